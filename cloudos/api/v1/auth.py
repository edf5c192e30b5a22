# cloudos/api/v1/auth.py
from __future__ import annotations

import json
from typing import Optional
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from cloudos.api.deps import AuthContext, get_auth, get_azure_client, get_current_user, get_db
from cloudos.core.errors import ApiError, AuthUrlFailed, NotFound, SSOError
from cloudos.core.rate_limit import rate_limit_sensitive
from cloudos.crud.user import user_crud
from cloudos.schemas.auth import (
    AuthUrlResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    VerifyResponse,
)
from cloudos.schemas.user import CurrentUser, UserOut, UserProfile, UserSummary
from cloudos.services.azure import AzureADClient

logger = structlog.get_logger(__name__)

router = APIRouter()


def _client_info(request: Request):
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


def _start_session(db: Session, auth: AuthContext, request: Request, user) -> str:
    token = auth.tokens.issue(user)
    ip, user_agent = _client_info(request)
    auth.sessions.create(db, token, user.id, ip_address=ip, user_agent=user_agent)
    return token


# ---------- Azure AD ----------
@router.get("/azure/url", response_model=AuthUrlResponse)
def azure_url(
    auth: AuthContext = Depends(get_auth),
    azure: AzureADClient = Depends(get_azure_client),
):
    state = auth.tokens.issue_state()
    try:
        url = azure.authorization_url(state)
    except SSOError as exc:
        logger.error("azure_url_failed", error=str(exc))
        raise AuthUrlFailed()
    return AuthUrlResponse(auth_url=url, state=state)


@router.get("/azure/callback", include_in_schema=False)
async def azure_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth),
    azure: AzureADClient = Depends(get_azure_client),
):
    frontend = auth.settings.FRONTEND_URL.rstrip("/")
    try:
        if not code:
            raise SSOError("authorization code not provided")
        if not state:
            raise SSOError("state not provided")
        auth.tokens.verify_state(state)

        profile = await azure.fetch_profile(code)
        user = auth.credentials.upsert_sso_identity(db, profile)
        token = _start_session(db, auth, request, user)
    except (SSOError, ApiError) as exc:
        logger.warning("sso_callback_failed", error=str(exc))
        return RedirectResponse(f"{frontend}/auth/error?message={quote('Authentication failed')}", status_code=302)
    except Exception:
        logger.exception("sso_callback_error")
        return RedirectResponse(f"{frontend}/auth/error?message={quote('Authentication failed')}", status_code=302)

    logger.info("user_logged_in", user_id=user.id, method="azure")
    summary = UserSummary.model_validate(user).model_dump(by_alias=True, mode="json")
    return RedirectResponse(
        f"{frontend}/auth/callback?token={token}&user={quote(json.dumps(summary))}",
        status_code=302,
    )


# ---------- local credentials ----------
@router.post("/login", response_model=LoginResponse, dependencies=[Depends(rate_limit_sensitive("login"))])
def login(
    body: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth),
):
    user = auth.credentials.authenticate(db, body.email, body.password)
    token = _start_session(db, auth, request, user)
    logger.info("user_logged_in", user_id=user.id, method="password")
    return LoginResponse(token=token, user=UserOut.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth),
):
    auth.sessions.revoke(db, request.state.token)
    logger.info("user_logged_out", user_id=user.id)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
def profile(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = user_crud.get(db, user.id)
    if row is None:
        raise NotFound("User not found")
    return ProfileResponse(user=UserProfile.model_validate(row))


@router.get("/verify", response_model=VerifyResponse)
def verify(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = user_crud.get(db, user.id)
    if row is None:
        raise NotFound("User not found")
    return VerifyResponse(user=UserSummary.model_validate(row))
