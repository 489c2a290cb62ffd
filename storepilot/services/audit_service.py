"""Security audit trail.

Records authentication and account events (registrations, logins, lockouts,
token refreshes). Writes are best-effort: a failed insert is rolled back and
logged, never surfaced to the client.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from storepilot.auth.guard import get_client_identifier
from storepilot.core.logging import get_logger, redact_sensitive_data
from storepilot.db.models import AuditLog

logger = get_logger(__name__)


def audit_log_event(
    db: Optional[DBSession],
    *,
    event_type: str,
    user_id: Optional[str],
    request: Optional[Request] = None,
    data: Optional[dict[str, Any]] = None,
) -> None:
    """Persist an audit entry for ``event_type``."""
    if db is None:
        return

    entry = AuditLog(
        user_id=user_id,
        event_type=event_type,
        data_json=redact_sensitive_data(data) if data else None,
    )
    if request is not None:
        entry.ip = get_client_identifier(request)
        entry.user_agent = (request.headers.get("user-agent") or "")[:512] or None
        entry.path = request.url.path
        entry.method = request.method

    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Audit log write failed",
            data={"event_type": event_type, "error": str(exc)},
        )
