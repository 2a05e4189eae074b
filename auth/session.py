"""
auth/session.py -- Login, refresh-token rotation, and password change.

Security design decisions:
  Credential checks collapse "no such email" and "wrong password" into one
       outcome (None / AuthError(INVALID_CREDENTIALS)). bcrypt always runs,
       against a dummy hash when the email is unknown, so response time does
       not reveal which accounts exist [C1].

  Refresh tokens rotate on every use. The old value stops resolving the
       instant it is exchanged, so a stolen token and its legitimate holder
       cannot both keep using it: whoever refreshes second gets INVALID_TOKEN.
       This detects theft, it does not prevent it -- there is no token-family
       tracking to kill a whole compromised lineage.

  Concurrent refreshes of one value are serialized by the compare-and-swap in
       RefreshTokenStore.replace(). Exactly one caller wins; the loser is
       treated exactly like a caller presenting an unknown token [R2].
"""

from __future__ import annotations

import logging

from auth.models import RefreshToken, SessionTokens, User
from auth.passwords import PasswordHasher
from auth.store import RefreshTokenStore, UserStore
from auth.tokens import TokenSigner, generate_refresh_token
from core.errors import AuthError, AuthFailure, ValidationError

logger = logging.getLogger("empdir.session")

_MIN_PASSWORD_LENGTH = 8


class SessionService:
    """Orchestrates credential validation and token issuance.

    Usage:
        sessions = SessionService(users, refresh_tokens, hasher, signer)
        tokens = sessions.login("a@b.com", "Admin@123")
        tokens = sessions.refresh(tokens.refresh_token)
    """

    def __init__(
        self,
        users: UserStore,
        refresh_tokens: RefreshTokenStore,
        hasher: PasswordHasher,
        signer: TokenSigner,
    ) -> None:
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.hasher = hasher
        self.signer = signer
        # Timing equalization dummy hash [C1]. Computed once per service with
        # the same cost factor as real hashes.
        self._dummy_hash = hasher.hash("empdir_timing_dummy")

    def validate_credentials(self, email: str, password: str) -> User | None:
        """Return the User if email and password match, otherwise None."""
        user = self.users.find_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            self.hasher.verify(password, self._dummy_hash)
            return None
        if not self.hasher.verify(password, user.password_hash):
            return None
        return user

    def login(self, email: str, password: str) -> SessionTokens:
        """Exchange email/password for an access token and a fresh refresh token.

        Raises AuthError(INVALID_CREDENTIALS) on any credential failure.
        """
        user = self.validate_credentials(email, password)
        if user is None:
            logger.info("Login failed")
            raise AuthError(AuthFailure.INVALID_CREDENTIALS)

        refresh = RefreshToken(user_id=user.id, token=generate_refresh_token())
        self.refresh_tokens.issue(refresh)
        logger.info("Login succeeded for user %s (must_change_password=%s)", user.id, user.must_change_password)
        return self._session_for(user, refresh.token)

    def refresh(self, token_value: str) -> SessionTokens:
        """Rotate a refresh token and issue a new access token for its owner.

        Raises AuthError(INVALID_TOKEN) if the value is unknown, was already
        rotated away, or loses a concurrent rotation [R2].
        """
        if not token_value:
            raise AuthError(AuthFailure.INVALID_TOKEN)
        existing = self.refresh_tokens.find_by_value(token_value)
        if existing is None or existing.user is None:
            logger.info("Refresh rejected: unknown token")
            raise AuthError(AuthFailure.INVALID_TOKEN)

        if not self.refresh_tokens.replace(existing, generate_refresh_token()):
            raise AuthError(AuthFailure.INVALID_TOKEN)

        logger.info("Refresh token rotated for user %s (row_id=%s)", existing.user_id, existing.id)
        return self._session_for(existing.user, existing.token)

    def change_password(self, email: str, current_password: str, new_password: str) -> None:
        """Replace a password after re-checking the current one.

        Clears must_change_password, which is how a bootstrap password gets
        rotated out.

        Raises:
            AuthError(INVALID_CREDENTIALS): the current password is wrong, or
                the account disappeared before the new hash was stored.
            ValidationError: the new password is too short or unchanged.
        """
        user = self.validate_credentials(email, current_password)
        if user is None:
            raise AuthError(AuthFailure.INVALID_CREDENTIALS)
        if len(new_password) < _MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {_MIN_PASSWORD_LENGTH} characters.")
        if new_password == current_password:
            raise ValidationError("New password must differ from the current password.")
        if not self.users.update_password(user.id, self.hasher.hash(new_password)):
            # Account removed between the credential check and the update.
            logger.warning("Password change lost its account: user %s no longer exists", user.id)
            raise AuthError(AuthFailure.INVALID_CREDENTIALS)
        logger.info("Password changed for user %s", user.id)

    def _session_for(self, user: User, refresh_value: str) -> SessionTokens:
        return SessionTokens(
            access_token=self.signer.issue_access_token(user),
            refresh_token=refresh_value,
            expires_in=self.signer.expire_seconds,
            user=user,
        )
