# cloudos/api/deps.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from cloudos.core.audit import AuditRecorder
from cloudos.core.clock import Clock, utcnow
from cloudos.core.config import Settings
from cloudos.core.errors import (
    AccessTokenRequired,
    AccountNotActive,
    ApiError,
    AuthenticationFailed,
    InvalidOrExpiredToken,
)
from cloudos.core.rbac import AuthorizationPolicy, UserStatus
from cloudos.core.tokens import TokenIssuer
from cloudos.db.session import get_db
from cloudos.schemas.user import CurrentUser
from cloudos.services.azure import AzureADClient
from cloudos.services.credentials import CredentialVerifier
from cloudos.services.dashboard import DashboardService
from cloudos.services.sessions import SessionStore

logger = structlog.get_logger(__name__)

__all__ = [
    "AuthContext",
    "RequestAuthenticator",
    "bearer_token",
    "get_auth",
    "get_azure_client",
    "get_current_user",
    "get_dashboard_service",
    "get_db",
]


# ----------------------------------------------------------------------
# Reads the Bearer from the Authorization header (no OAuth2PasswordBearer)
# ----------------------------------------------------------------------
def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AccessTokenRequired()
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AccessTokenRequired()
    return parts[1]


class RequestAuthenticator:
    """Per-request gate: header -> token signature -> session row -> account status.

    Anything unexpected on the way fails closed with a 500, never open.
    """

    def __init__(self, tokens: TokenIssuer, sessions: SessionStore, audit: AuditRecorder):
        self.tokens = tokens
        self.sessions = sessions
        self.audit = audit

    def authenticate(self, request: Request, db: Session, background_tasks: BackgroundTasks) -> CurrentUser:
        token = bearer_token(request.headers.get("authorization"))
        try:
            claims = self.tokens.verify(token)
            row = self.sessions.lookup(db, token)
            if not self.sessions.is_live(row) or claims["sub"] != str(row.user_id):
                raise InvalidOrExpiredToken()
            user = row.user
            if user.status != UserStatus.ACTIVE.value:
                raise AccountNotActive()
            current = CurrentUser(id=user.id, email=user.email, role=user.role, status=user.status)
        except ApiError:
            raise
        except Exception:
            logger.exception("authentication_error", path=request.url.path)
            raise AuthenticationFailed()

        request.state.user = current
        request.state.token = token
        try:
            self.audit.schedule(background_tasks, current.id, request)
        except Exception:
            logger.exception("audit_schedule_failed", user_id=current.id)
        return current


@dataclass
class AuthContext:
    """Everything the auth layer needs, built once per app and kept on app.state."""

    settings: Settings
    tokens: TokenIssuer
    sessions: SessionStore
    credentials: CredentialVerifier
    policy: AuthorizationPolicy
    audit: AuditRecorder
    authenticator: RequestAuthenticator

    @classmethod
    def build(cls, settings: Settings, session_factory: sessionmaker, clock: Clock = utcnow) -> "AuthContext":
        tokens = TokenIssuer(settings, clock=clock)
        sessions = SessionStore(settings.SESSION_TTL, clock=clock)
        audit = AuditRecorder(session_factory, api_prefix=settings.API_PREFIX, skip_paths=settings.AUDIT_SKIP_PATHS)
        return cls(
            settings=settings,
            tokens=tokens,
            sessions=sessions,
            credentials=CredentialVerifier(clock=clock),
            policy=AuthorizationPolicy(),
            audit=audit,
            authenticator=RequestAuthenticator(tokens, sessions, audit),
        )


def get_auth(request: Request) -> AuthContext:
    return request.app.state.auth


def get_azure_client(request: Request) -> AzureADClient:
    return request.app.state.azure


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard


def get_current_user(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth),
) -> CurrentUser:
    return auth.authenticator.authenticate(request, db, background_tasks)
