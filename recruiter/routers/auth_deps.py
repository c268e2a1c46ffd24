"""
Admin gate.
Admin routes require the encrypted session cookie issued by /auth/login.
"""
import logging

from fastapi import Request

from recruiter.core.config import settings
from recruiter.core.exceptions import AuthenticationError
from recruiter.core.security import read_admin_session

logger = logging.getLogger(__name__)


def get_admin_username(request: Request) -> str:
    token = request.cookies.get(settings.admin_cookie_name)
    username = read_admin_session(token)
    if username is None:
        logger.warning(f"Admin access denied for {request.method} {request.url.path}")
        raise AuthenticationError("Admin login required")
    return username


require_admin = get_admin_username
