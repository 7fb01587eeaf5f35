from typing import Literal

from pydantic import BaseModel, EmailStr, ConfigDict, Field

from sara.schemas.role import Role


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    rut: str | None = None
    role_id: int
    role: Role


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    rut: str | None = Field(None, max_length=12)
    password: str = Field(..., min_length=8)
    role_id: int | None = None  # If not provided, defaults to "tenant"


class UserSignup(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    rut: str | None = Field(None, max_length=12)
    password: str = Field(..., min_length=8)
    role: Literal["landlord", "tenant"]


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    rut: str | None = Field(None, max_length=12)
    role_id: int | None = None


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
