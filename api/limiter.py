"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in route modules
(to apply per-route limits with @limiter.limit()). A single shared instance
means all routes share one in-memory counter store.

LOGIN_RATE_LIMIT is read from settings when this module is imported, so a
changed LOGIN_RATE_LIMIT takes effect on restart.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")

LOGIN_RATE_LIMIT: str = get_settings().login_rate_limit
