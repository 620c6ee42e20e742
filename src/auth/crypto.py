# src/auth/crypto.py
import logging

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from src.core.config import get_app_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__memory_cost=65536,  # KiB
    argon2__parallelism=4,
    argon2__time_cost=3,
)


def _peppered(password: str) -> str:
    return f"{password}{get_app_settings().password_pepper}"


def hash_password(password: str) -> str:
    """Hashes a password using Argon2 with the configured pepper."""
    if not password:
        raise ValueError("Password cannot be empty.")
    return pwd_context.hash(_peppered(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain password against a stored hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(_peppered(plain_password), hashed_password)
    except (UnknownHashError, ValueError):
        logger.warning(f"Attempted verification with unknown hash format: {hashed_password[:10]}...")
        return False
