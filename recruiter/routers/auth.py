import logging

from fastapi import APIRouter, Depends, Request, Response

from recruiter.core.config import settings
from recruiter.core.exceptions import AuthenticationError
from recruiter.core.limiter import limiter
from recruiter.core.security import create_admin_session, verify_admin_credentials
from recruiter.routers.auth_deps import require_admin
from recruiter.schemas.auth import LoginRequest, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login", response_model=SessionResponse)
@limiter.limit("5/minute")
def login(request: Request, response: Response, login_data: LoginRequest):
    if not verify_admin_credentials(login_data.username, login_data.password):
        logger.warning(f"Failed admin login for '{login_data.username}'")
        raise AuthenticationError("Invalid credentials")

    response.set_cookie(
        key=settings.admin_cookie_name,
        value=create_admin_session(login_data.username),
        max_age=settings.admin_session_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
        path="/",
    )
    logger.info(f"Admin '{login_data.username}' logged in")
    return SessionResponse(success=True, username=login_data.username)


@router.post("/logout", response_model=SessionResponse)
def logout(response: Response):
    response.delete_cookie(key=settings.admin_cookie_name, path="/")
    return SessionResponse(success=True)


@router.get("/me", response_model=SessionResponse)
def me(username: str = Depends(require_admin)):
    return SessionResponse(success=True, username=username)
