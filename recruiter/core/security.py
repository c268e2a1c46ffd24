import base64
import hashlib
import logging
import secrets
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from passlib.context import CryptContext

from recruiter.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_SESSION_PREFIX = "admin:"


def _cipher() -> Fernet:
    # Fernet needs 32 url-safe base64 bytes; derive them from SECRET_KEY
    digest = hashlib.sha256(settings.secret_key.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def verify_admin_credentials(username: str, password: str) -> bool:
    """Check login input against ADMIN_USERNAME and ADMIN_PASSWORD(_HASH)."""
    if not secrets.compare_digest(username or "", settings.admin_username):
        return False
    if settings.admin_password_hash:
        return verify_password(password or "", settings.admin_password_hash)
    if settings.admin_password:
        return secrets.compare_digest(password or "", settings.admin_password)
    logger.error("Admin login attempted but no admin password is configured.")
    return False


def create_admin_session(username: str) -> str:
    return _cipher().encrypt(f"{_SESSION_PREFIX}{username}".encode()).decode()


def read_admin_session(token: Optional[str]) -> Optional[str]:
    """Return the admin username carried by a session cookie, or None if invalid/expired."""
    if not token:
        return None
    ttl = settings.admin_session_days * 24 * 60 * 60
    try:
        value = _cipher().decrypt(token.encode(), ttl=ttl).decode()
    except InvalidToken:
        logger.info("Rejected admin session token (invalid or expired)")
        return None
    if not value.startswith(_SESSION_PREFIX):
        return None
    return value[len(_SESSION_PREFIX):]
