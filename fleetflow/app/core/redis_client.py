"""
Redis client initialization.

Redis holds token revocation flags.
"""

import redis.asyncio as redis
from fleetflow.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)
