"""Common module — shared utilities for the HRMS portal."""

from hrms.common.audit import AuditTrail, create_audit_entry, jsonable
from hrms.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    AdjustmentType,
    ApplicationPriority,
    ApplicationType,
    ApprovalStatus,
    AttendanceStatus,
    ComponentType,
    CorrectionType,
    ExpenseStatus,
    NotificationType,
    SalaryStatus,
    UserRole,
    Weekday,
)
from hrms.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from hrms.common.filters import apply_filters, apply_search, apply_sorting
from hrms.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    build_meta,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    "jsonable",
    # Constants / Enums
    "AdjustmentType",
    "ApplicationPriority",
    "ApplicationType",
    "ApprovalStatus",
    "AttendanceStatus",
    "ComponentType",
    "CorrectionType",
    "ExpenseStatus",
    "NotificationType",
    "SalaryStatus",
    "UserRole",
    "Weekday",
    "PERMISSIONS",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InvalidTransitionException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    "apply_sorting",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "build_meta",
    "paginate",
]
