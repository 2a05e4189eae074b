"""
employees/store.py -- SQLAlchemy Core persistence for employee profiles.

Only what account provisioning and the user listing need: insert, lookup by
owning user, lookup by id. General employee CRUD belongs to the records
application above this layer.

UNIQUE(user_id) on the employees table is what guarantees one profile per
account when two provisioning requests race.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.engine import Connection, Engine

from core.db import begin, employees, now_iso
from employees.models import Employee


class EmployeeStore:
    """Repository for Employee profiles."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, employee: Employee, conn: Connection | None = None) -> Employee:
        """Insert a profile and return it with id and created_at set.

        Raises sqlalchemy.exc.IntegrityError if the user already has a profile
        or user_id does not reference an existing account.
        """
        employee.created_at = now_iso()
        with begin(self.engine, conn) as c:
            result = c.execute(
                employees.insert().values(
                    user_id=employee.user_id,
                    first_name=employee.first_name,
                    last_name=employee.last_name,
                    email=employee.email,
                    gender=employee.gender,
                    job_role=employee.job_role,
                    department_id=employee.department_id,
                    phone_no=employee.phone_no,
                    created_at=employee.created_at,
                )
            )
        employee.id = result.inserted_primary_key[0]
        return employee

    def get_by_user_id(self, user_id: int, conn: Connection | None = None) -> Employee | None:
        with begin(self.engine, conn) as c:
            row = c.execute(select(employees).where(employees.c.user_id == user_id)).fetchone()
        return _row_to_employee(row) if row is not None else None

    def get_by_id(self, employee_id: int) -> Employee | None:
        with self.engine.connect() as conn:
            row = conn.execute(select(employees).where(employees.c.id == employee_id)).fetchone()
        return _row_to_employee(row) if row is not None else None

    def count_for_user(self, user_id: int) -> int:
        with self.engine.connect() as conn:
            return conn.execute(
                select(func.count()).select_from(employees).where(employees.c.user_id == user_id)
            ).scalar_one()


def _row_to_employee(row) -> Employee:
    return Employee(
        id=row.id,
        user_id=row.user_id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        gender=row.gender,
        job_role=row.job_role,
        department_id=row.department_id,
        phone_no=row.phone_no,
        created_at=row.created_at,
    )
