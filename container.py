"""
container.py -- Composition root for the auth layer.

Builds every store and service from one Settings instance. The API lifespan
and the CLI both call build_services(); nothing else constructs stores or
reads the signing configuration.

The SigningConfig is derived here exactly once and passed into TokenSigner,
so there is no module-level signing state anywhere in the tree.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from auth.passwords import PasswordHasher
from auth.provisioning import AccountProvisioningService
from auth.session import SessionService
from auth.store import RefreshTokenStore, UserStore
from auth.tokens import TokenSigner
from core.config import Settings, SigningConfig
from core.db import create_db_engine
from employees.store import EmployeeStore


@dataclass
class AuthServices:
    engine: Engine
    users: UserStore
    refresh_tokens: RefreshTokenStore
    employees: EmployeeStore
    hasher: PasswordHasher
    signer: TokenSigner
    sessions: SessionService
    provisioning: AccountProvisioningService

    def close(self) -> None:
        self.engine.dispose()


def build_services(settings: Settings, db_url: str | None = None) -> AuthServices:
    """Wire stores and services for settings.

    db_url overrides settings.database_url (tests point it at a temp file).
    """
    engine = create_db_engine(db_url or settings.database_url)
    users = UserStore(engine)
    refresh_tokens = RefreshTokenStore(engine)
    employees = EmployeeStore(engine)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    signer = TokenSigner(SigningConfig.from_settings(settings))
    return AuthServices(
        engine=engine,
        users=users,
        refresh_tokens=refresh_tokens,
        employees=employees,
        hasher=hasher,
        signer=signer,
        sessions=SessionService(users, refresh_tokens, hasher, signer),
        provisioning=AccountProvisioningService(engine, users, employees, hasher),
    )
