"""Rate limiting configuration using slowapi.

The module-level Limiter is wired into the app in main.py; routers import
it to tighten individual endpoints (e.g. login).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from hrms.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
