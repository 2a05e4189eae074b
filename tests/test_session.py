"""Unit tests for auth/session.py -- credential validation, login, refresh, password change.

Covers:
- validate_credentials() hit, wrong password, unknown email (indistinguishable)
- login() returns an access token with the right role claim and a persisted
  refresh token; bad credentials raise AuthError(INVALID_CREDENTIALS)
- end-to-end bootstrap scenarios for admins and employees
- refresh() rotates: the old value stops working, the row is reused
- concurrent refreshes of one value: exactly one wins
- change_password() clears must_change_password and fails if the account
  vanished mid-change
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from jose import jwt

from auth.models import Role, User
from auth.provisioning import NewAdmin
from core.db import users
from core.errors import AuthError, AuthFailure, ValidationError
from employees.models import NewEmployee


@pytest.fixture
def known_user(services) -> User:
    return services.users.create(
        User(
            email="user@test.com",
            password_hash=services.hasher.hash("Test@1234"),
            role=Role.EMPLOYEE.value,
            must_change_password=False,
        )
    )


# ---------------------------------------------------------------------------
# validate_credentials
# ---------------------------------------------------------------------------


def test_validate_credentials_returns_user(services, known_user):
    result = services.sessions.validate_credentials("user@test.com", "Test@1234")
    assert result is not None
    assert result.email == "user@test.com"


def test_validate_credentials_wrong_password_and_unknown_email_look_the_same(services, known_user):
    wrong_password = services.sessions.validate_credentials("user@test.com", "Wrong@123")
    unknown_email = services.sessions.validate_credentials("missing@test.com", "Test@1234")
    assert wrong_password is None
    assert unknown_email is None
    assert wrong_password == unknown_email


def test_unknown_email_still_runs_bcrypt(services, monkeypatch):
    calls = []
    real_verify = services.hasher.verify
    monkeypatch.setattr(services.hasher, "verify", lambda p, h: calls.append(h) or real_verify(p, h))

    services.sessions.validate_credentials("missing@test.com", "anything")

    assert len(calls) == 1


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


def test_login_returns_token_pair(services, known_user):
    tokens = services.sessions.login("user@test.com", "Test@1234")

    assert tokens.token_type == "bearer"
    assert tokens.expires_in == 900
    assert tokens.user.id == known_user.id
    claims = services.signer.decode_access_token(tokens.access_token)
    assert claims["sub"] == str(known_user.id)
    assert claims["email"] == "user@test.com"
    stored = services.refresh_tokens.find_by_value(tokens.refresh_token)
    assert stored is not None
    assert stored.user_id == known_user.id


def test_each_login_gets_its_own_refresh_token(services, known_user):
    first = services.sessions.login("user@test.com", "Test@1234")
    second = services.sessions.login("user@test.com", "Test@1234")
    assert first.refresh_token != second.refresh_token
    assert services.refresh_tokens.count_for_user(known_user.id) == 2


@pytest.mark.parametrize("email,password", [("user@test.com", "Wrong@123"), ("missing@test.com", "Test@1234")])
def test_login_failure_is_uniform(services, known_user, email, password):
    with pytest.raises(AuthError) as excinfo:
        services.sessions.login(email, password)
    assert excinfo.value.reason is AuthFailure.INVALID_CREDENTIALS
    assert excinfo.value.message == "Invalid email or password."
    assert services.refresh_tokens.count_for_user(known_user.id) == 0


def test_admin_bootstrap_login_scenario(services):
    services.provisioning.add_admin(NewAdmin(email="admin@test.com"))

    tokens = services.sessions.login("admin@test.com", "Admin@123")

    claims = jwt.get_unverified_claims(tokens.access_token)
    assert claims["role"] == "Admin"
    assert tokens.user.must_change_password is True


def test_employee_bootstrap_login_scenario(services):
    services.provisioning.add_employee(
        NewEmployee(
            first_name="Raksha",
            last_name="Achary",
            email="raksha@test.com",
            gender="Female",
            job_role="Developer",
            department_id=1,
            phone_no="9999999999",
        )
    )

    tokens = services.sessions.login("raksha@test.com", "Raksha@123")

    assert tokens.user.must_change_password is True
    assert jwt.get_unverified_claims(tokens.access_token)["role"] == "Employee"


# ---------------------------------------------------------------------------
# refresh
# ---------------------------------------------------------------------------


def test_refresh_rotates_token(services, known_user):
    login = services.sessions.login("user@test.com", "Test@1234")
    row_id = services.refresh_tokens.find_by_value(login.refresh_token).id

    refreshed = services.sessions.refresh(login.refresh_token)

    assert refreshed.refresh_token != login.refresh_token
    assert services.refresh_tokens.find_by_value(login.refresh_token) is None
    assert services.refresh_tokens.find_by_value(refreshed.refresh_token).id == row_id
    assert services.refresh_tokens.count_for_user(known_user.id) == 1
    claims = services.signer.decode_access_token(refreshed.access_token)
    assert claims["sub"] == str(known_user.id)


def test_refresh_chain(services, known_user):
    current = services.sessions.login("user@test.com", "Test@1234").refresh_token
    for _ in range(3):
        current = services.sessions.refresh(current).refresh_token
    assert services.refresh_tokens.find_by_value(current) is not None


def test_reusing_rotated_token_is_rejected(services, known_user):
    login = services.sessions.login("user@test.com", "Test@1234")
    services.sessions.refresh(login.refresh_token)

    with pytest.raises(AuthError) as excinfo:
        services.sessions.refresh(login.refresh_token)
    assert excinfo.value.reason is AuthFailure.INVALID_TOKEN


@pytest.mark.parametrize("value", ["", "never-issued"])
def test_refresh_unknown_token(services, value):
    with pytest.raises(AuthError) as excinfo:
        services.sessions.refresh(value)
    assert excinfo.value.reason is AuthFailure.INVALID_TOKEN


def test_refresh_losing_rotation_is_invalid_token(services, known_user, monkeypatch):
    """A caller whose read went stale before its compare-and-swap gets INVALID_TOKEN."""
    login = services.sessions.login("user@test.com", "Test@1234")
    stale = services.refresh_tokens.find_by_value(login.refresh_token)
    services.sessions.refresh(login.refresh_token)
    monkeypatch.setattr(services.refresh_tokens, "find_by_value", lambda value: stale)

    with pytest.raises(AuthError) as excinfo:
        services.sessions.refresh(login.refresh_token)
    assert excinfo.value.reason is AuthFailure.INVALID_TOKEN


def test_concurrent_refresh_has_exactly_one_winner(services, known_user):
    login = services.sessions.login("user@test.com", "Test@1234")
    barrier = threading.Barrier(2)

    def attempt():
        barrier.wait()
        try:
            return services.sessions.refresh(login.refresh_token)
        except AuthError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(lambda _: attempt(), range(2)))

    winners = [r for r in results if not isinstance(r, AuthError)]
    losers = [r for r in results if isinstance(r, AuthError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].reason is AuthFailure.INVALID_TOKEN
    assert services.refresh_tokens.find_by_value(winners[0].refresh_token) is not None
    assert services.refresh_tokens.count_for_user(known_user.id) == 1


# ---------------------------------------------------------------------------
# change_password
# ---------------------------------------------------------------------------


def test_change_password_clears_flag(services):
    services.provisioning.add_admin(NewAdmin(email="admin@test.com"))

    services.sessions.change_password("admin@test.com", "Admin@123", "BrandNew#2024")

    user = services.users.find_by_email("admin@test.com")
    assert user.must_change_password is False
    assert services.sessions.validate_credentials("admin@test.com", "Admin@123") is None
    assert services.sessions.login("admin@test.com", "BrandNew#2024").user.must_change_password is False


def test_change_password_requires_current_password(services, known_user):
    with pytest.raises(AuthError):
        services.sessions.change_password("user@test.com", "Wrong@123", "BrandNew#2024")


@pytest.mark.parametrize("new_password", ["short", "Test@1234"])
def test_change_password_rejects_weak_or_unchanged(services, known_user, new_password):
    with pytest.raises(ValidationError):
        services.sessions.change_password("user@test.com", "Test@1234", new_password)


def test_change_password_for_vanished_account_fails(services, known_user, monkeypatch):
    """The account is deleted after the credential check but before the update."""
    real_update = services.users.update_password

    def delete_then_update(user_id, password_hash):
        with services.engine.begin() as conn:
            conn.execute(users.delete().where(users.c.id == user_id))
        return real_update(user_id, password_hash)

    monkeypatch.setattr(services.users, "update_password", delete_then_update)

    with pytest.raises(AuthError) as excinfo:
        services.sessions.change_password("user@test.com", "Test@1234", "BrandNew#2024")
    assert excinfo.value.reason is AuthFailure.INVALID_CREDENTIALS
    assert services.users.find_by_email("user@test.com") is None
