"""Unit tests for core/config.py -- fail-fast signing configuration.

Covers:
- a complete configuration is accepted and converts to a frozen SigningConfig
- missing SECRET_KEY, short keys, blank issuer/audience abort
- DEBUG=true does not turn a missing key into a generated one
- out-of-range token lifetime and bcrypt cost are rejected
"""

import dataclasses

import pytest
from pydantic import ValidationError

from core.config import Settings, SigningConfig
from tests.conftest import TEST_AUDIENCE, TEST_ISSUER, TEST_SECRET, make_settings


def _bare(**values) -> Settings:
    return Settings(_env_file=None, **values)


def test_complete_config_builds_signing_config():
    signing = SigningConfig.from_settings(make_settings(token_expire_seconds=120))
    assert signing.secret_key == TEST_SECRET
    assert signing.issuer == TEST_ISSUER
    assert signing.audience == TEST_AUDIENCE
    assert signing.access_token_expire_seconds == 120
    assert signing.algorithm == "HS256"


def test_signing_config_is_immutable():
    signing = SigningConfig.from_settings(make_settings())
    with pytest.raises(dataclasses.FrozenInstanceError):
        signing.secret_key = "x" * 40


def test_missing_secret_key_is_fatal():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        _bare(secret_key="", jwt_issuer="i", jwt_audience="a")


def test_debug_flag_does_not_bypass_missing_secret_key():
    # DEBUG is ignored; there is no generated-key mode.
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        _bare(debug=True, secret_key="", jwt_issuer="i", jwt_audience="a")


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32"):
        make_settings(secret_key="too-short")


@pytest.mark.parametrize("field", ["jwt_issuer", "jwt_audience"])
def test_blank_issuer_or_audience_rejected(field):
    with pytest.raises(ValidationError, match=field.upper()):
        make_settings(**{field: "  "})


def test_non_positive_lifetime_rejected():
    with pytest.raises(ValidationError, match="TOKEN_EXPIRE_SECONDS"):
        make_settings(token_expire_seconds=0)


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_rounds_out_of_range_rejected(rounds):
    with pytest.raises(ValidationError, match="BCRYPT_ROUNDS"):
        make_settings(bcrypt_rounds=rounds)
