from sqlalchemy.orm import Session

from sara.core.security import create_password_reset_token, verify_password
from sara.repositories.user import get_user_by_email, set_password_reset_token


# ============================================================================
# LOGIN TESTS
# ============================================================================


def test_login_success(client, db: Session, admin_user: dict):
    """Test successful login returns access token and user info."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": admin_user["email"],
            "password": admin_user["password"],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == admin_user["email"]
    assert data["user"]["role"]["name"] == "admin"


def test_login_email_is_case_insensitive(client, db: Session, landlord_user_dict: dict):
    """Test login matches the email regardless of case."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": landlord_user_dict["email"].upper(),
            "password": landlord_user_dict["password"],
        },
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == landlord_user_dict["id"]


def test_login_invalid_email(client, db: Session):
    """Test login with non-existent email."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": "nonexistent@example.com",
            "password": "Password123!",
        },
    )
    assert response.status_code == 401
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "UNAUTHORIZED"
    assert "Incorrect email or password" in data["detail"]


def test_login_wrong_password(client, db: Session, admin_user: dict):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": admin_user["email"],
            "password": "WrongPassword123!",
        },
    )
    assert response.status_code == 401
    assert "Incorrect email or password" in response.json()["detail"]


# ============================================================================
# SIGNUP TESTS
# ============================================================================


def test_signup_as_landlord_success(client, db: Session):
    """Test public signup creates a landlord even though SMTP is not configured."""
    response = client.post(
        "/api/v1/auth/signup",
        json={
            "email": "new.landlord@example.com",
            "name": "New Landlord",
            "rut": "12345678-5",
            "password": "Landlord123!",
            "role": "landlord",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.landlord@example.com"
    assert data["rut"] == "12345678-5"
    assert data["role"]["name"] == "landlord"
    assert "password_hash" not in data


def test_signup_as_tenant_success(client, db: Session):
    """Test public signup creates a tenant."""
    response = client.post(
        "/api/v1/auth/signup",
        json={
            "email": "new.tenant@example.com",
            "name": "New Tenant",
            "password": "Tenant123!",
            "role": "tenant",
        },
    )
    assert response.status_code == 201
    assert response.json()["role"]["name"] == "tenant"


def test_signup_survives_welcome_delivery_failure(client, db: Session, unreachable_smtp):
    """Test the account is created when the welcome email cannot be delivered."""
    response = client.post(
        "/api/v1/auth/signup",
        json={
            "email": "unlucky.tenant@example.com",
            "name": "Unlucky Tenant",
            "password": "Tenant123!",
            "role": "tenant",
        },
    )
    assert response.status_code == 201
    assert unreachable_smtp == ["unlucky.tenant@example.com"]
    assert get_user_by_email(db, "unlucky.tenant@example.com") is not None


def test_signup_as_admin_rejected(client, db: Session):
    """Test admin accounts cannot be self-registered."""
    response = client.post(
        "/api/v1/auth/signup",
        json={
            "email": "sneaky@example.com",
            "name": "Sneaky",
            "password": "Sneaky123!",
            "role": "admin",
        },
    )
    assert response.status_code == 422


def test_signup_email_already_exists(client, db: Session, tenant_user_dict: dict):
    """Test signup with a registered email fails."""
    response = client.post(
        "/api/v1/auth/signup",
        json={
            "email": tenant_user_dict["email"],
            "name": "Duplicate",
            "password": "Duplicate123!",
            "role": "tenant",
        },
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


def test_signup_weak_password(client, db: Session):
    """Test signup enforces the password rules."""
    response = client.post(
        "/api/v1/auth/signup",
        json={
            "email": "weak@example.com",
            "name": "Weak",
            "password": "password123!",
            "role": "tenant",
        },
    )
    assert response.status_code == 400
    assert "uppercase" in response.json()["detail"]


# ============================================================================
# USER CREATION TESTS
# ============================================================================


def test_create_user_as_admin_success(client, db: Session, admin_token: str):
    """Test successful user creation by admin."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "NewPassword123!",
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "newuser@example.com"
    assert data["name"] == "New User"
    assert "password_hash" not in data  # Password hash should not be exposed
    # New user should be assigned "tenant" role by default
    assert data["role"]["name"] == "tenant"


def test_create_user_with_specific_role(client, db: Session, admin_token: str):
    """Test user creation with specific role_id."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "landlord.created@example.com",
            "name": "John Landlord",
            "password": "LandPassword123!",
            "role_id": 2,  # landlord role
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["role_id"] == 2
    assert data["role"]["name"] == "landlord"


def test_create_user_without_authentication(client, db: Session):
    """Test user creation without authentication fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "NewPassword123!",
        },
    )
    assert response.status_code == 401  # Missing authentication credentials


def test_create_user_as_non_admin(client, db: Session, landlord_token: str):
    """Test user creation by non-admin fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "another@example.com",
            "name": "Another User",
            "password": "AnotherPass123!",
        },
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 403
    assert "Not enough permissions" in response.json()["detail"]


def test_create_user_email_already_exists(client, db: Session, admin_token: str, admin_user: dict):
    """Test user creation with duplicate email fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": admin_user["email"],  # Already exists
            "name": "Duplicate User",
            "password": "NewPassword123!",
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 409
    assert "Email already registered" in response.json()["detail"]


def test_create_user_invalid_password_too_short(client, db: Session, admin_token: str):
    """Test user creation with password too short fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "Short1!",  # Only 7 chars, needs 8+
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    # Pydantic validates min_length at request parsing level (422)
    assert response.status_code == 422


def test_create_user_invalid_password_no_number(client, db: Session, admin_token: str):
    """Test user creation with no number fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "Password!",  # No number
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 400
    assert "number" in response.json()["detail"]


def test_create_user_invalid_password_no_symbol(client, db: Session, admin_token: str):
    """Test user creation with no symbol fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "Password123",  # No symbol
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 400
    assert "symbol" in response.json()["detail"]


def test_create_user_invalid_role_id(client, db: Session, admin_token: str):
    """Test user creation with invalid role_id fails."""
    response = client.post(
        "/api/v1/users",
        json={
            "email": "newuser@example.com",
            "name": "New User",
            "password": "NewPassword123!",
            "role_id": 999,  # Non-existent role
        },
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


# ============================================================================
# GET CURRENT USER TESTS
# ============================================================================


def test_get_current_user_success(client, db: Session, admin_token: str, admin_user: dict):
    """Test getting current user info with valid token."""
    response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == admin_user["email"]
    assert data["id"] == admin_user["id"]


def test_get_current_user_without_token(client, db: Session):
    """Test getting current user without token fails."""
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401  # Missing authentication credentials
    assert response.json() == {
        "success": False,
        "error": "Not authenticated",
        "detail": "Not authenticated",
        "code": "UNAUTHORIZED",
    }


def test_get_current_user_invalid_token(client, db: Session):
    """Test getting current user with invalid token fails."""
    response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": "Bearer invalid_token"},
    )
    assert response.status_code == 401
    assert "Could not validate credentials" in response.json()["detail"]


def test_get_current_user_with_reset_token_rejected(client, db: Session, admin_user: dict):
    """Test a password reset token cannot be used as an access token."""
    reset_token = create_password_reset_token(
        data={"sub": admin_user["id"], "email": admin_user["email"]}
    )
    response = client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {reset_token}"},
    )
    assert response.status_code == 401


# ============================================================================
# PASSWORD RESET TESTS
# ============================================================================


def test_forgot_password_success(client, db: Session, admin_user: dict):
    """Test password reset request returns generic success even when SMTP not configured."""
    response = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": admin_user["email"]},
    )
    assert response.status_code == 200
    assert "If the email exists" in response.json()["message"]

    user = get_user_by_email(db, admin_user["email"])
    db.refresh(user)
    assert user.password_reset_token is not None


def test_forgot_password_survives_delivery_failure(
    client, db: Session, admin_user: dict, unreachable_smtp
):
    """Test a refused reset email still gets the generic answer and keeps the stored token."""
    response = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": admin_user["email"]},
    )
    assert response.status_code == 200
    assert "If the email exists" in response.json()["message"]
    assert unreachable_smtp == [admin_user["email"]]

    user = get_user_by_email(db, admin_user["email"])
    db.refresh(user)
    assert user.password_reset_token is not None


def test_forgot_password_nonexistent_email(client, db: Session):
    """Test password reset for non-existent email (should not reveal if user exists)."""
    response = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": "nonexistent@example.com"},
    )
    assert response.status_code == 200
    assert "If the email exists" in response.json()["message"]


def test_reset_password_success(client, db: Session, tenant_user_dict: dict):
    """Test a stored reset token lets the user choose a new password."""
    from datetime import datetime, timedelta, timezone

    token = create_password_reset_token(
        data={"sub": tenant_user_dict["id"], "email": tenant_user_dict["email"]}
    )
    set_password_reset_token(
        db, tenant_user_dict["id"], token, datetime.now(timezone.utc) + timedelta(hours=1)
    )

    response = client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "new_password": "BrandNew123!"},
    )
    assert response.status_code == 200

    user = get_user_by_email(db, tenant_user_dict["email"])
    db.refresh(user)
    assert verify_password("BrandNew123!", user.password_hash)
    assert user.password_reset_token is None


def test_reset_password_invalid_token(client, db: Session):
    """Test password reset with invalid token fails."""
    response = client.post(
        "/api/v1/auth/reset-password",
        json={
            "token": "invalid.token.here",
            "new_password": "NewPassword123!",
        },
    )
    assert response.status_code == 400
    assert "Invalid or expired token" in response.json()["detail"]
