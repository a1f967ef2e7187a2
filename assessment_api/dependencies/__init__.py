"""FastAPI dependencies."""
from assessment_api.dependencies.auth import (
    ROLE_ADMIN,
    ROLE_INSTRUCTOR,
    ROLE_STUDENT,
    Principal,
    get_current_principal,
    require_roles,
)

__all__ = [
    "ROLE_ADMIN",
    "ROLE_INSTRUCTOR",
    "ROLE_STUDENT",
    "Principal",
    "get_current_principal",
    "require_roles",
]
