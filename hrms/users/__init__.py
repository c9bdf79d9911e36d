"""Users module — User and Department models, schemas and services."""

from hrms.users.models import Department, User

__all__ = ["User", "Department"]
