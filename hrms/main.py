"""HRMS — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hrms.announcements import router as announcements
from hrms.applications import router as applications
from hrms.attendance import router as attendance
from hrms.auth.router import router as auth_router
from hrms.common.exceptions import register_exception_handlers
from hrms.common.rate_limit import limiter
from hrms.config import settings
from hrms.dashboard import router as dashboard
from hrms.database import engine
from hrms.expenses import router as expenses
from hrms.holidays import router as holidays
from hrms.messages.router import router as messages_router
from hrms.notifications.router import router as notifications_router
from hrms.salary import router as salary
from hrms.users import router as users

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("HRMS %s starting (%s)", VERSION, settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("HRMS shut down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title="HRMS",
        description="Human resource management: attendance, applications, expenses, payroll",
        version=VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # Auth
    app.include_router(auth_router, prefix="/api/auth")

    # Admin
    app.include_router(users.admin_users_router, prefix="/api/admin/users")
    app.include_router(users.admin_departments_router, prefix="/api/admin/departments")
    app.include_router(users.admin_audit_router, prefix="/api/admin/audit")
    app.include_router(dashboard.admin_router, prefix="/api/admin/dashboard")
    app.include_router(attendance.admin_router, prefix="/api/admin/attendance")
    app.include_router(attendance.shifts_router, prefix="/api/admin/work-shifts")
    app.include_router(attendance.working_days_router, prefix="/api/admin/working-days")
    app.include_router(applications.admin_router, prefix="/api/admin/applications")
    app.include_router(expenses.admin_router, prefix="/api/admin/expenses")
    app.include_router(salary.admin_router, prefix="/api/admin/salary")
    app.include_router(holidays.admin_router, prefix="/api/admin/holidays")
    app.include_router(announcements.admin_router, prefix="/api/admin/announcements")

    # Manager
    app.include_router(users.manager_employees_router, prefix="/api/manager/employees")
    app.include_router(dashboard.manager_router, prefix="/api/manager/dashboard")
    app.include_router(attendance.manager_router, prefix="/api/manager/attendance")
    app.include_router(applications.manager_router, prefix="/api/manager/applications")
    app.include_router(expenses.manager_router, prefix="/api/manager/expenses")
    app.include_router(salary.manager_router, prefix="/api/manager/salary")
    app.include_router(announcements.manager_router, prefix="/api/manager/announcements")

    # Employee
    app.include_router(dashboard.employee_router, prefix="/api/employee/dashboard")
    app.include_router(attendance.employee_router, prefix="/api/employee/attendance")
    app.include_router(applications.employee_router, prefix="/api/employee/applications")
    app.include_router(salary.employee_router, prefix="/api/employee/salary")

    # Shared (any authenticated role)
    app.include_router(users.profile_router, prefix="/api/shared/profile")
    app.include_router(users.shared_departments_router, prefix="/api/shared/departments")
    app.include_router(holidays.shared_router, prefix="/api/shared/holidays")
    app.include_router(notifications_router, prefix="/api/shared/notifications")
    app.include_router(messages_router, prefix="/api/shared/messages")
    app.include_router(announcements.shared_router, prefix="/api/shared/announcements")

    return app


app = create_app()
