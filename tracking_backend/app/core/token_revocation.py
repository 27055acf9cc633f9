"""
Token Revocation using Redis.

Signed-out admin tokens are blacklisted until they would have expired.
"""

import logging
from redis.exceptions import RedisError
from tracking_backend.app.core.redis_client import get_redis
from tracking_backend.app.core.config import settings

logger = logging.getLogger("tracking.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        client = await get_redis()
        ttl_seconds = settings.access_token_expire_minutes * 60
        await client.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", ttl_seconds, str(user_id))
        return True
    except RedisError as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Returns:
        True if token is revoked, False otherwise (also when Redis is down)
    """
    try:
        client = await get_redis()
        exists = await client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except RedisError as e:
        logger.error("Error checking token revocation: %s", e)
        return False
