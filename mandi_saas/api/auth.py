"""
User authentication API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session
import structlog
import uuid

from mandi_saas.core.auth import create_access_token, verify_password
from mandi_saas.core.clock import utcnow
from mandi_saas.core.config import get_settings
from mandi_saas.core.database import get_session
from mandi_saas.core.dependencies import get_current_user
from mandi_saas.models.user import User, UserStatus
from mandi_saas.schemas.token import TokenPayload
from mandi_saas.schemas.user import LoginResponse, UserLogin, UserResponse
from mandi_saas.services.repositories import UserRepository

logger = structlog.get_logger(__name__)
router = APIRouter()
settings = get_settings()


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        status=user.status,
        tenant_id=user.tenant_id,
        last_login_at=user.last_login_at,
    )


def _set_auth_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        max_age=max_age,
        path="/",
    )


@router.post("/login", response_model=LoginResponse)
async def login_user(
    login_data: UserLogin,
    response: Response,
    session: Session = Depends(get_session)
):
    """Login user and set the auth cookie"""
    if not login_data.email or not login_data.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required"
        )

    users = UserRepository(session)
    user = users.find_by_email(login_data.email)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    if not verify_password(login_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    user.last_login_at = utcnow()
    users.save(user)
    logger.info(f"User logged in: {user.id}")

    token = create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        tenant_id=user.tenant_id,
    )
    _set_auth_cookie(response, token, max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60)

    return LoginResponse(user=_user_response(user), token=token)


@router.post("/logout")
async def logout_user(response: Response):
    """Clear the auth cookie"""
    _set_auth_cookie(response, "", max_age=0)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: TokenPayload = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Get current user info"""
    user = session.get(User, uuid.UUID(current_user.sub))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return _user_response(user)
