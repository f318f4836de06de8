"""Pydantic schemas for users and authentication."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, EmailStr, ConfigDict, ValidationInfo, field_validator


class UserCreate(BaseModel):
    """Schema for creating a local user record."""

    firebase_uid: str = Field(..., min_length=1, description="Identity provider subject id")
    email: EmailStr = Field(..., description="User email address")
    display_name: Optional[str] = Field(default=None, description="User's display name")


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="User email address")
    display_name: Optional[str] = Field(default=None, description="User's display name")
    created_at: datetime = Field(..., description="Account creation timestamp")


class SignInRequest(BaseModel):
    """Credentials obtained from the identity provider after sign-in."""

    id_token: str = Field(..., min_length=1, description="Freshly issued ID token")
    firebase_uid: str = Field(..., min_length=1, description="Identity provider subject id")


class SignUpRequest(SignInRequest):
    """Credentials obtained from the identity provider after sign-up."""

    email: EmailStr = Field(..., description="User email address")
    display_name: Optional[str] = Field(default=None, description="User's display name")


class PasswordSignInRequest(BaseModel):
    """Email and password sign-in form."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class PasswordSignUpRequest(PasswordSignInRequest):
    """Email and password sign-up form."""

    password: str = Field(..., min_length=6, description="User password")
    confirm_password: str = Field(..., description="Password repeated")
    display_name: Optional[str] = Field(default=None, description="User's display name")

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Passwords do not match.")
        return value
