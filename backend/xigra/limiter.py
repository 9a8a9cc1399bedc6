"""
Shared slowapi limiter.

Limit strings are looked up per request from whatever settings the running
app was built with (see ``configure_limits``).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from xigra.config import Settings, settings as default_settings

limiter = Limiter(key_func=get_remote_address)

_active = {"settings": default_settings}


def configure_limits(settings: Settings) -> None:
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    _active["settings"] = settings


def register_limit() -> str:
    return _active["settings"].RATE_LIMIT_REGISTER


def upload_limit() -> str:
    return _active["settings"].RATE_LIMIT_UPLOADS
