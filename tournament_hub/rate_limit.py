"""
Shared slowapi limiter. main.py attaches it to app.state; routes decorate with it.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from tournament_hub.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
