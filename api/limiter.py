"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and
api/routes/accounts.py (to apply per-route limits with @limiter.limit()).

A single shared instance means all routes share the same in-memory counter
store. Separate instances per module would each count in isolation and the
limits would never trigger.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_rate_limit() -> str:
    """Per-IP limit for POST /login, read from settings at request time."""
    return get_settings().login_rate_limit
