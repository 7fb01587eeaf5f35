from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from sara.core.security import decode_token
from sara.db import SessionLocal
from sara.db.atomic import AtomicStore, SqlAlchemyAtomicStore
from sara.db.models.user import User
from sara.domain.identity import Identity
from sara.errors import ForbiddenError, UnauthorizedError

# Missing tokens are reported through UnauthorizedError, not FastAPI's bare 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_atomic_store(db: Session = Depends(get_db)) -> AtomicStore:
    """AtomicStore bound to the request's database session."""
    return SqlAlchemyAtomicStore(db)


def _authenticate(token: str | None, db: Session) -> User:
    if not token:
        raise UnauthorizedError("Not authenticated")

    payload = decode_token(token)
    if payload is None:
        raise UnauthorizedError("Could not validate credentials")

    # Validate token type - must be "access" token, not password reset or other types
    if payload.get("type") != "access":
        raise UnauthorizedError("Could not validate credentials")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Could not validate credentials")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("User not found")

    return user


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from JWT token."""
    return _authenticate(token, db)


def get_current_identity(current_user: User = Depends(get_current_user)) -> Identity:
    """The authenticated caller as an explicit identity value."""
    return Identity(user_id=current_user.id, email=current_user.email)


def get_optional_identity(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Identity | None:
    """The caller's identity, or None when the session cannot be verified."""
    try:
        user = _authenticate(token, db)
    except UnauthorizedError:
        return None
    return Identity(user_id=user.id, email=user.email)


def require_roles(*role_names: str):
    """
    Create a dependency that requires the current user to have one of the specified roles.

    Args:
        *role_names: Variable number of role name strings to allow

    Returns:
        A dependency function that checks if the user has one of the required roles

    Example:
        Depends(require_roles("admin"))
        Depends(require_roles("admin", "landlord"))
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.name not in role_names:
            raise ForbiddenError("Not enough permissions")
        return current_user

    return role_checker
