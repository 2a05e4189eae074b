"""
auth/provisioning.py -- Creating employee and admin accounts.

Two flows with deliberately different rules:

  add_employee  -- reuses an existing account with the same email (its
                   password and must_change_password flag are left alone),
                   otherwise creates an Employee account whose bootstrap
                   password is "<FirstName>@123". Either way the account
                   ends up with one linked profile; if it already had one,
                   that profile is returned and nothing is written.

  add_admin     -- never reuses. An existing email is a refusal (False).
                   New admins all get the same bootstrap password "Admin@123".

Every auto-created account starts with must_change_password=True.

Race handling [R1]:
  The find-then-create sequence runs inside one transaction, and the real
  guard is the UNIQUE constraint on users.email / employees.user_id. When a
  concurrent request slips in between the check and the insert, the insert
  raises IntegrityError, the transaction rolls back, and the caller gets a
  ConflictError it may retry. A race never turns into a silent False.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.passwords import PasswordHasher, admin_bootstrap_password, employee_bootstrap_password
from auth.store import UserStore, normalize_email
from core.db import begin
from core.errors import ConflictError, ValidationError
from employees.models import Employee, NewEmployee
from employees.store import EmployeeStore

logger = logging.getLogger("empdir.provisioning")


@dataclass
class NewAdmin:
    email: str


@dataclass
class EmployeeAccount:
    """Outcome of add_employee().

    user_created is False when an existing account was reused. Both outcomes
    are successes.
    """

    user_id: int
    employee_id: int
    user_created: bool


class AccountProvisioningService:
    def __init__(
        self,
        engine: Engine,
        users: UserStore,
        employees: EmployeeStore,
        hasher: PasswordHasher,
    ) -> None:
        self.engine = engine
        self.users = users
        self.employees = employees
        self.hasher = hasher

    def add_employee(self, data: NewEmployee) -> EmployeeAccount:
        """Create an employee profile, creating its account if needed.

        Repeating the call for an email whose account already has a profile
        is a success that writes nothing: the existing profile is returned
        with user_created=False.

        Raises:
            ValidationError: the email or first name is blank. Nothing is written.
            ConflictError: a concurrent request created the same account or
                profile first [R1].
        """
        email = normalize_email(data.email)
        if not email:
            raise ValidationError("Email is required.")
        if not data.first_name.strip():
            raise ValidationError("First name is required.")

        try:
            with begin(self.engine) as conn:
                user = self.users.find_by_email(email, conn=conn)
                user_created = user is None
                existing = None
                if user is None:
                    user = self.users.create(
                        User(
                            email=email,
                            password_hash=self.hasher.hash(employee_bootstrap_password(data.first_name)),
                            role=Role.EMPLOYEE.value,
                            must_change_password=True,
                        ),
                        conn=conn,
                    )
                else:
                    existing = self.employees.get_by_user_id(user.id, conn=conn)

                employee = existing
                if employee is None:
                    employee = self.employees.create(
                        Employee(
                            user_id=user.id,
                            first_name=data.first_name,
                            last_name=data.last_name,
                            email=email,
                            gender=data.gender,
                            job_role=data.job_role,
                            department_id=data.department_id,
                            phone_no=data.phone_no,
                        ),
                        conn=conn,
                    )
        except IntegrityError as exc:
            logger.warning("Employee provisioning conflict for %s", email)
            raise ConflictError(
                "The account or profile was created concurrently. Retry the request.",
                detail={"email": email},
            ) from exc

        if existing is not None:
            logger.info("Employee profile %s already exists for user %s", employee.id, user.id)
        else:
            logger.info(
                "Provisioned employee profile %s for user %s (%s account)",
                employee.id,
                user.id,
                "new" if user_created else "existing",
            )
        return EmployeeAccount(user_id=user.id, employee_id=employee.id, user_created=user_created)

    def add_admin(self, data: NewAdmin) -> bool:
        """Create an admin account. Returns False if the email is taken.

        Raises:
            ValidationError: the email is blank.
            ConflictError: a concurrent request created the same email between
                the check and the insert [R1].
        """
        email = normalize_email(data.email)
        if not email:
            raise ValidationError("Email is required.")

        try:
            with begin(self.engine) as conn:
                if self.users.find_by_email(email, conn=conn) is not None:
                    logger.info("Admin provisioning refused: %s already exists", email)
                    return False
                user = self.users.create(
                    User(
                        email=email,
                        password_hash=self.hasher.hash(admin_bootstrap_password()),
                        role=Role.ADMIN.value,
                        must_change_password=True,
                    ),
                    conn=conn,
                )
        except IntegrityError as exc:
            logger.warning("Admin provisioning conflict for %s", email)
            raise ConflictError(
                "An account with this email was created concurrently.",
                detail={"email": email},
            ) from exc

        logger.info("Provisioned admin user %s", user.id)
        return True
