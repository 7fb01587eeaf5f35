"""Sign-in and password recovery."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

import sara.repositories.user as user_repo
from sara.core.config import settings
from sara.core.security import (
    create_access_token,
    create_password_reset_token,
    decode_token,
    get_password_hash,
    validate_password,
    verify_password,
)
from sara.errors import DomainValidationError, UnauthorizedError
from sara.schemas.user import Token, User
from sara.services.email import DELIVERY_ERRORS, send_password_reset_email

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If the email exists, a password reset link has been sent."


def login(db: Session, email: str, password: str) -> Token:
    """
    Exchange email and password for a bearer token.

    The same error is raised for an unknown email and a wrong password.

    Raises:
        UnauthorizedError
    """
    user = user_repo.get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Rejected sign-in for %s", email)
        raise UnauthorizedError("Incorrect email or password")

    return Token(
        access_token=create_access_token(data={"sub": user.id}),
        user=User.model_validate(user),
    )


async def forgot_password(db: Session, email: str) -> dict[str, str]:
    """
    Store a reset token for the account and email it.

    The response never reveals whether the account exists or whether the
    email could be sent.
    """
    user = user_repo.get_user_by_email(db, email)
    if user is None:
        return {"message": GENERIC_RESET_MESSAGE}

    reset_token = create_password_reset_token(data={"sub": user.id, "email": user.email})
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=settings.password_reset_token_expire_minutes
    )
    user_repo.set_password_reset_token(db, user.id, reset_token, expires)

    try:
        await send_password_reset_email(user.email, reset_token)
    except DELIVERY_ERRORS as e:
        logger.error("Failed to send password reset email: %s", e)

    return {"message": GENERIC_RESET_MESSAGE}


def _user_id_from_reset_token(token: str) -> int:
    payload = decode_token(token)
    if payload is None:
        raise DomainValidationError("Invalid or expired token")
    if payload.get("type") != "password_reset":
        raise DomainValidationError("Invalid token type")
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise DomainValidationError("Invalid token")


def reset_password(db: Session, token: str, new_password: str) -> dict[str, str]:
    """
    Set a new password with a token issued by ``forgot_password``.

    The token must be a valid reset JWT, still stored for the same user and
    not expired. Using it clears it.

    Raises:
        DomainValidationError: On a bad token or a password that breaks the rules
    """
    user_id = _user_id_from_reset_token(token)

    user = user_repo.get_user_by_reset_token(db, token)
    if user is None or user.id != user_id:
        raise DomainValidationError("Invalid or expired token")

    is_valid, error_message = validate_password(new_password)
    if not is_valid:
        raise DomainValidationError(error_message)

    user_repo.update_user_password(db, user.id, get_password_hash(new_password))
    logger.info("Password reset for user %s", user.id)
    return {"message": "Password has been reset successfully"}
