"""Authentication-related request and response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Payload for customer self-registration."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    name: str | None = None


class LoginRequest(BaseModel):
    """Payload for user login."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"


class AuthUserResponse(BaseModel):
    """User response for auth endpoints."""

    id: int
    email: str
    name: str | None = None
    role: str

    model_config = ConfigDict(from_attributes=True)
