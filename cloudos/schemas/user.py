# cloudos/schemas/user.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator
from cloudos.core.rbac import Role, UserStatus
from cloudos.schemas.base import ApiModel


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def normalize_login_email(value) -> str:
    # stored accounts may sit on internal domains (corp.local), so only the shape is checked
    if not isinstance(value, str):
        raise ValueError("email must be a string")
    email = normalize_email(value)
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or "@" in domain or any(c.isspace() for c in email):
        raise ValueError("value is not a valid email address")
    return email


class CurrentUser(BaseModel):
    """Minimal identity attached to an authenticated request."""
    id: int
    email: str
    role: Role
    status: UserStatus


class UserSummary(ApiModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role


class UserOut(UserSummary):
    display_name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    avatar: Optional[str] = None


class UserProfile(UserOut):
    phone_number: Optional[str] = None
    status: UserStatus
    timezone: Optional[str] = None
    language: Optional[str] = None
    theme: Optional[str] = None
    last_login: Optional[datetime] = None
    login_count: int = 0
    created_at: Optional[datetime] = None


class ExternalProfile(BaseModel):
    """Identity asserted by Azure AD (Graph ``/me``). Only id and email are required."""
    id: str
    email: str
    given_name: Optional[str] = None
    surname: Optional[str] = None
    display_name: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, v):
        return normalize_login_email(v)


class StatusUpdate(ApiModel):
    status: UserStatus


class RoleUpdate(ApiModel):
    role: Role


