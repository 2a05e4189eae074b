"""
auth/tokens.py -- Access-token signing and refresh-token generation.

Security design decisions:
  Access tokens: python-jose JWT, HS256 by default. Claims are the user id
       (sub), email, role, plus iss/aud/iat/exp from SigningConfig. Tokens are
       self-verifying: anyone holding the key can check signature and expiry.
       Nothing about issued access tokens is stored, so there is no revocation.

  Verification returns None on any failure -- the route layer turns that
       into a 401.

  Refresh tokens: secrets.token_urlsafe(64), 512 bits of entropy with no
       embedded structure. Their only meaning is the row they match in
       RefreshTokenStore.

  Config: TokenSigner receives a frozen SigningConfig at construction. It
       never reads Settings itself.

Layer rule: no imports from api/ or employees/. Import from core/ is allowed.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from core.config import SigningConfig

if TYPE_CHECKING:
    from auth.models import User

_REQUIRED_CLAIMS = ("sub", "email", "role")


class TokenSigner:
    """Builds and verifies signed access tokens for one SigningConfig."""

    def __init__(self, config: SigningConfig) -> None:
        self._config = config

    @property
    def expire_seconds(self) -> int:
        return self._config.access_token_expire_seconds

    def issue_access_token(self, user: User) -> str:
        """Encode a signed JWT carrying the user's identity claims."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "iss": self._config.issuer,
            "aud": self._config.audience,
            "iat": now,
            "exp": now + timedelta(seconds=self._config.access_token_expire_seconds),
        }
        return jwt.encode(payload, self._config.secret_key, algorithm=self._config.algorithm)

    def decode_access_token(self, token: str) -> dict | None:
        """Verify signature, expiry, issuer and audience.

        Returns the claims dict, or None if anything is off.
        """
        try:
            payload = jwt.decode(
                token,
                self._config.secret_key,
                algorithms=[self._config.algorithm],
                audience=self._config.audience,
                issuer=self._config.issuer,
            )
        except JWTError:
            return None
        if any(claim not in payload for claim in _REQUIRED_CLAIMS):
            return None
        return payload


def generate_refresh_token() -> str:
    """Return a new opaque refresh-token value."""
    return secrets.token_urlsafe(64)
