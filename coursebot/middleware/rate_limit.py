"""
Request rate limiting for the chat endpoint (providers are free-tier and rate limited).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from coursebot.config import settings

limiter = Limiter(key_func=get_remote_address)

CHAT_RATE_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
