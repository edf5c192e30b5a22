# cloudos/services/azure.py
from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import ValidationError

from cloudos.core.config import Settings
from cloudos.core.errors import SSOError
from cloudos.schemas.user import ExternalProfile

logger = structlog.get_logger(__name__)

SCOPES = "openid profile email User.Read"
GRAPH_ME_URL = "https://graph.microsoft.com/v1.0/me"


class AzureADClient:
    """Authorization-code flow against Azure AD plus a Graph ``/me`` lookup.

    Every outbound call is bounded by ``AZURE_HTTP_TIMEOUT_SECONDS``.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport
        self.authority = settings.azure_authority
        self.timeout = settings.AZURE_HTTP_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return self.settings.azure_configured

    def authorization_url(self, state: str) -> str:
        if not self.configured:
            raise SSOError("Azure AD is not configured")
        params = {
            "client_id": self.settings.AZURE_CLIENT_ID,
            "response_type": "code",
            "redirect_uri": self.settings.AZURE_REDIRECT_URI,
            "response_mode": "query",
            "scope": SCOPES,
            "state": state,
        }
        return f"{self.authority}/oauth2/v2.0/authorize?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> ExternalProfile:
        if not self.configured:
            raise SSOError("Azure AD is not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=False, transport=self.transport) as client:
                token_response = await client.post(
                    f"{self.authority}/oauth2/v2.0/token",
                    data={
                        "client_id": self.settings.AZURE_CLIENT_ID,
                        "client_secret": self.settings.AZURE_CLIENT_SECRET,
                        "code": code,
                        "redirect_uri": self.settings.AZURE_REDIRECT_URI,
                        "grant_type": "authorization_code",
                        "scope": SCOPES,
                    },
                    headers={"Accept": "application/json"},
                )
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise SSOError("token endpoint returned no access_token")

                me_response = await client.get(GRAPH_ME_URL, headers={"Authorization": f"Bearer {access_token}"})
                me_response.raise_for_status()
                return self.parse_profile(me_response.json())
        except httpx.TimeoutException as exc:
            logger.error("azure_timeout", error=str(exc))
            raise SSOError("identity provider timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.error("azure_http_error", status_code=exc.response.status_code, url=str(exc.request.url))
            raise SSOError("identity provider rejected the request") from exc
        except httpx.HTTPError as exc:
            logger.error("azure_transport_error", error=str(exc))
            raise SSOError("identity provider unreachable") from exc

    @staticmethod
    def parse_profile(data: Dict[str, Any]) -> ExternalProfile:
        if not isinstance(data, dict):
            raise SSOError("unexpected /me payload")
        try:
            return ExternalProfile(
                id=data.get("id"),
                email=data.get("mail") or data.get("userPrincipalName"),
                given_name=data.get("givenName"),
                surname=data.get("surname"),
                display_name=data.get("displayName"),
                job_title=data.get("jobTitle"),
                department=data.get("department"),
            )
        except ValidationError as exc:
            raise SSOError("profile is missing id or email") from exc
