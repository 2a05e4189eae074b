"""
employees/models.py -- Domain dataclasses for employee profiles.

Pure data containers. EmployeeStore does the persistence; account
provisioning decides when a profile gets created.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class NewEmployee:
    """Input for provisioning an employee and (if needed) their account."""

    first_name: str
    last_name: str
    email: str
    gender: Optional[str] = None
    job_role: Optional[str] = None
    department_id: Optional[int] = None
    phone_no: Optional[str] = None


@dataclass
class Employee:
    """An employee profile linked to exactly one User account.

    The profile owns the reference (user_id); the account does not point back.
    email is the linked account's normalized email at creation time.

    id is None before the record is written to the database.
    """

    user_id: int
    first_name: str
    last_name: str
    email: str
    gender: Optional[str] = None
    job_role: Optional[str] = None
    department_id: Optional[int] = None
    phone_no: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
