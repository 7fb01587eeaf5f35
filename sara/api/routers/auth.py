import logging

from fastapi import APIRouter, Depends, Form, status
from sqlalchemy.orm import Session

from sara.api.deps import get_db, get_current_user
from sara.schemas.user import PasswordReset, PasswordResetRequest, Token, User, UserSignup
from sara.services import auth as auth_service
from sara.services.email import DELIVERY_ERRORS, send_welcome_email
from sara.services.user import register_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(
    username: str = Form(...),  # OAuth2 uses "username", but we treat it as email
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    """
    Login endpoint - returns JWT token.
    Uses form data for OAuth2 compatibility (Swagger UI authorization).
    The 'username' field should contain the user's email address.
    """
    return auth_service.login(db, email=username, password=password)


@router.post("/signup", response_model=User, status_code=status.HTTP_201_CREATED)
async def signup(signup_data: UserSignup, db: Session = Depends(get_db)):
    """
    Register a new landlord or tenant account.

    A welcome email is sent when SMTP is configured; the account is created either way.
    """
    user = register_user(db, signup_data)
    try:
        await send_welcome_email(user.email, user.name, user.role.name)
    except DELIVERY_ERRORS as e:
        logger.error("Failed to send welcome email: %s", e)
    return User.model_validate(user)


@router.post("/forgot-password")
async def forgot_password(
    request: PasswordResetRequest,
    db: Session = Depends(get_db),
):
    """Request password reset - sends email with reset token."""
    return await auth_service.forgot_password(db, request.email)


@router.post("/reset-password")
def reset_password(reset_data: PasswordReset, db: Session = Depends(get_db)):
    """Reset password using token from email."""
    return auth_service.reset_password(db, reset_data.token, reset_data.new_password)


@router.get("/me", response_model=User)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return User.model_validate(current_user)
