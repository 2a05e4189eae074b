"""
API request and response models for the employee directory auth endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
employees/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import SessionTokens, UserSummary

# Deliberately loose: one "@" with something on each side. Deliverability is
# not this layer's problem.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=256)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)


class EmployeeCreate(BaseModel):
    """Request body for POST /api/v1/users/employees.

    If an account with this email already exists it is reused and its
    password is not touched. Otherwise a new Employee account is created
    with a bootstrap password the user must change at first login.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    gender: Optional[str] = Field(default=None, max_length=20)
    job_role: Optional[str] = Field(default=None, max_length=100)
    department_id: Optional[int] = None
    phone_no: Optional[str] = Field(default=None, max_length=30)


class AdminCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Response body for POST /auth/login and POST /auth/refresh."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    email: str
    role: str
    must_change_password: bool

    @classmethod
    def from_session(cls, tokens: SessionTokens) -> "TokenResponse":
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user_id=tokens.user.id,
            email=tokens.user.email,
            role=tokens.user.role,
            must_change_password=tokens.user.must_change_password,
        )


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    role: str
    must_change_password: bool


class UserSummaryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    role: str
    must_change_password: bool

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "UserSummaryResponse":
        return cls(
            id=summary.id,
            email=summary.email,
            role=summary.role,
            must_change_password=summary.must_change_password,
        )


class EmployeeAccountResponse(BaseModel):
    """user_created is False when an existing account was linked."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    employee_id: int
    user_created: bool


class AdminCreatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    role: str = "Admin"
    must_change_password: bool = True


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
