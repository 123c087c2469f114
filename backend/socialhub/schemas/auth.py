"""Pydantic schemas for authentication API."""

from pydantic import BaseModel, EmailStr, Field

from socialhub.services.auth import LogoutFlag


class SignupRequest(BaseModel):
    """Request for account sign-up."""

    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)",
    )


class ConfirmEmailRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=12)


class LoginRequest(BaseModel):
    """Request for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Response with a JWT pair and the label to present it with."""

    access_token: str
    refresh_token: str
    token_type: str = Field(description='Authorization header label, "Bearer" or "Admin"')
    expires_in: int = Field(description="Access token expiry in seconds")


class ResetCodeRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=12)
    password: str = Field(..., min_length=8, max_length=128)


class ChangePasswordRequest(BaseModel):
    """Request for password change."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="New password (minimum 8 characters)",
    )


class LogoutRequest(BaseModel):
    """Logout from the current session only, or from every session."""

    flag: LogoutFlag = LogoutFlag.ONLY


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
