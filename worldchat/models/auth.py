"""Authentication request models."""

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class LoginRequest(BaseModel):
    """Login request forwarded to the AI backend."""
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)


class SignupRequest(BaseModel):
    """Account creation request forwarded to the AI backend."""
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)
    name: str = ""
    action: str = "create account"
