"""Users Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response / *Detail → response bodies (read)
  - *Brief → compact representations embedded elsewhere
"""


import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrms.common.constants import UserRole


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    is_active: bool = True


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class DepartmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    is_active: bool = True
    employee_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DepartmentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class DepartmentStatistics(BaseModel):
    id: uuid.UUID
    name: str
    is_active: bool
    total_users: int
    active_users: int
    managers: int
    employees: int
    total_base_salary: Decimal


# ═════════════════════════════════════════════════════════════════════
# User
# ═════════════════════════════════════════════════════════════════════


class UserCreate(BaseModel):
    """Admin creates an account. ``employee_code`` is generated when omitted."""

    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = UserRole.employee
    employee_code: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    job_title: Optional[str] = Field(None, max_length=150)
    department_id: Optional[uuid.UUID] = None
    base_salary: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    start_date: Optional[date] = None


class UserUpdate(BaseModel):
    """Admin update — every field optional; ``password`` resets the credential."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    job_title: Optional[str] = Field(None, max_length=150)
    department_id: Optional[uuid.UUID] = None
    base_salary: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    start_date: Optional[date] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class ProfileUpdate(BaseModel):
    """Self-service profile edit. Password change needs the current password."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=6, max_length=128)


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    employee_code: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    full_name: str
    employee_code: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    job_title: Optional[str] = None
    role: UserRole
    is_active: bool = True
    department_id: Optional[uuid.UUID] = None
    department_name: Optional[str] = None
    base_salary: Decimal = Decimal("0")
    start_date: Optional[date] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserStatistics(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: dict[str, int]
    by_department: dict[str, int]


# ═════════════════════════════════════════════════════════════════════
# Audit trail
# ═════════════════════════════════════════════════════════════════════


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    action: str
    entity_type: str
    entity_id: uuid.UUID
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    created_at: datetime
