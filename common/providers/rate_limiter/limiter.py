"""Global rate limiter instance for SlowAPI."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from common.core.config import settings

# Multiple limits: both must be satisfied (whichever is hit first applies)
# - 10/second: absorbs webhook bursts from a single caller
# - 300/minute: sustained rate limit (5 req/sec average)
# Point rate_limit_storage_uri at Redis so limits hold across API pods
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=settings.rate_limit_default,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
