"""
api/routes/v1/users.py -- Account provisioning and user directory endpoints.

Routes (all admin only):
  POST /api/v1/users/employees      -- create profile (+ account unless one exists)
  POST /api/v1/users/admins         -- create admin account; refuses existing email
  GET  /api/v1/users                -- list accounts in creation order
  GET  /api/v1/users/by-email       -- look up one account by email

Provisioning failures surface through the app-level ServiceError handler:
  400 validation_error / user_exists, 409 conflict (safe to retry).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from api.models import AdminCreate, AdminCreatedResponse, EmployeeAccountResponse, EmployeeCreate, UserSummaryResponse
from auth.dependencies import require_admin
from auth.models import User
from auth.provisioning import NewAdmin
from container import AuthServices
from core.errors import NotFoundError, ValidationError
from employees.models import NewEmployee

router = APIRouter()


@router.post("/users/employees", response_model=EmployeeAccountResponse, status_code=201)
def add_employee(
    request: Request,
    body: EmployeeCreate,
    current_user: User = Depends(require_admin),
) -> EmployeeAccountResponse:
    """Create an employee profile, reusing an existing account with the same email."""
    services: AuthServices = request.app.state.services
    account = services.provisioning.add_employee(NewEmployee(**body.model_dump()))
    return EmployeeAccountResponse(
        user_id=account.user_id,
        employee_id=account.employee_id,
        user_created=account.user_created,
    )


@router.post("/users/admins", response_model=AdminCreatedResponse, status_code=201)
def add_admin(
    request: Request,
    body: AdminCreate,
    current_user: User = Depends(require_admin),
) -> AdminCreatedResponse:
    """Create an admin account with the shared bootstrap password."""
    services: AuthServices = request.app.state.services
    if not services.provisioning.add_admin(NewAdmin(email=body.email)):
        raise ValidationError("A user with that email already exists.", error_code="user_exists")
    return AdminCreatedResponse(email=body.email.lower())


@router.get("/users", response_model=list[UserSummaryResponse])
def list_users(
    request: Request,
    current_user: User = Depends(require_admin),
) -> list[UserSummaryResponse]:
    services: AuthServices = request.app.state.services
    return [UserSummaryResponse.from_summary(s) for s in services.users.list_all()]


@router.get("/users/by-email", response_model=UserSummaryResponse)
def get_user_by_email(
    request: Request,
    email: str = Query(min_length=3, max_length=255),
    current_user: User = Depends(require_admin),
) -> UserSummaryResponse:
    services: AuthServices = request.app.state.services
    user = services.users.find_by_email(email)
    if user is None:
        raise NotFoundError("User not found.")
    return UserSummaryResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        must_change_password=user.must_change_password,
    )
