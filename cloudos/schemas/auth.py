# cloudos/schemas/auth.py
from pydantic import BaseModel, Field, field_validator
from cloudos.schemas.base import ApiModel
from cloudos.schemas.user import UserOut, UserProfile, UserSummary, normalize_login_email


class LoginRequest(BaseModel):
    email: str
    # presence only: a wrong or short password is a 401 from the verifier, not a 400
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, v):
        return normalize_login_email(v)


class LoginResponse(ApiModel):
    success: bool = True
    token: str
    user: UserOut


class ProfileResponse(ApiModel):
    success: bool = True
    user: UserProfile


class VerifyResponse(ApiModel):
    success: bool = True
    valid: bool = True
    user: UserSummary


class AuthUrlResponse(ApiModel):
    success: bool = True
    auth_url: str
    state: str


class MessageResponse(ApiModel):
    success: bool = True
    message: str
