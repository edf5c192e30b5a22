# cloudos/core/audit.py
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional, Tuple

import structlog
from fastapi import BackgroundTasks, Request
from sqlalchemy.orm import sessionmaker

from cloudos.models.audit import AuditLog

logger = structlog.get_logger(__name__)

API_ACCESS = "API_ACCESS"


class AuditRecorder:
    """Best-effort access trail.

    Writes happen in a background task after the response is sent, on their
    own DB session; a failing audit sink is logged and otherwise ignored.
    """

    def __init__(self, session_factory: sessionmaker, *, api_prefix: str = "", skip_paths: Iterable[str] = ()):
        self.session_factory = session_factory
        self.api_prefix = api_prefix.rstrip("/")
        self.skip_paths = tuple(skip_paths)

    def should_skip(self, path: str) -> bool:
        if self.api_prefix and path.startswith(self.api_prefix):
            path = path[len(self.api_prefix):] or "/"
        return any(path.startswith(p) for p in self.skip_paths)

    def record(
        self,
        user_id: Optional[int],
        action: str,
        path: str,
        metadata: Dict[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        try:
            with self.session_factory() as db:
                db.add(AuditLog(
                    user_id=user_id,
                    action=action,
                    entity="API",
                    entity_id=path[:255],
                    changes=json.dumps(metadata, default=str),
                    ip_address=ip_address,
                    user_agent=(user_agent or "")[:255] or None,
                ))
                db.commit()
        except Exception:
            logger.exception("audit_write_failed", user_id=user_id, action=action, path=path)

    def _entry(self, request: Request) -> Optional[Tuple[str, Dict[str, Any], Optional[str], Optional[str]]]:
        path = request.url.path
        if self.should_skip(path):
            return None
        ip = request.client.host if request.client else None
        user_agent = request.headers.get("user-agent")
        metadata = {
            "method": request.method,
            "path": path,
            "query": dict(request.query_params),
            "userAgent": user_agent,
            "ip": ip,
        }
        return path, metadata, ip, user_agent

    def schedule(self, background_tasks: BackgroundTasks, user_id: int, request: Request) -> bool:
        entry = self._entry(request)
        if entry is None:
            return False
        path, metadata, ip, user_agent = entry
        background_tasks.add_task(self.record, user_id, API_ACCESS, path, metadata, ip, user_agent)
        return True

    def record_denied(self, user_id: int, request: Request) -> bool:
        """Writes the entry now; a refused request never runs its background tasks."""
        entry = self._entry(request)
        if entry is None:
            return False
        path, metadata, ip, user_agent = entry
        self.record(user_id, API_ACCESS, path, {**metadata, "denied": True}, ip, user_agent)
        return True
