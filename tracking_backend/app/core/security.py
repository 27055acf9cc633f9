"""
Password hashing helpers (bcrypt).
"""

import logging
import bcrypt
from tracking_backend.app.core.config import settings

logger = logging.getLogger("tracking.auth")


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error("Password verification failed: %s", e)
        return False
