# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Audit sinks.

Provides:
- AuditSink: the write contract used by the engine and template service
- DatabaseAuditSink: writes SecurityAuditLog rows, best-effort
- log_access_denied / log_delete_attempt / log_successful_delete helpers

Recording is best-effort: a failed write is logged and swallowed, it
never changes or blocks an authorization decision.
"""

import logging
from typing import Protocol

from django.conf import settings
from django.db import transaction

from .entries import AuditAction, AuditLogEntry

logger = logging.getLogger(__name__)

__all__ = [
    "AuditAction",
    "AuditLogEntry",
    "AuditSink",
    "DatabaseAuditSink",
    "get_client_ip",
    "log_access_denied",
    "log_delete_attempt",
    "log_successful_delete",
]


class AuditSink(Protocol):
    def record(self, entry: AuditLogEntry, request=None) -> None: ...


def get_client_ip(request) -> str:
    """Get the client's IP address from request."""
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")


def request_metadata(request) -> dict:
    """Audit fields derived from the current request."""
    metadata = {
        "ip_address": get_client_ip(request) or None,
        "user_agent": request.META.get("HTTP_USER_AGENT", ""),
        "endpoint": request.get_full_path(),
        "http_method": request.method or "",
        "session_id": "",
    }

    session = getattr(request, "session", None)
    if session is not None and session.session_key:
        metadata["session_id"] = session.session_key

    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        metadata["user_id"] = str(user.pk)
        metadata["user_email"] = user.email

    lab_id = getattr(request, "lab_id", None) or request.META.get(settings.AUTHZ_LAB_HEADER)
    if lab_id:
        metadata["lab_id"] = str(lab_id)

    return metadata


class DatabaseAuditSink:
    """
    Writes audit entries to SecurityAuditLog.

    Fields already set on the entry win over request metadata. Each write
    runs in its own savepoint so a failing insert does not poison the
    caller's transaction.
    """

    def __init__(self, enabled: bool | None = None):
        self.enabled = settings.AUTHZ_AUDIT_ENABLED if enabled is None else enabled

    def record(self, entry: AuditLogEntry, request=None) -> None:
        if not self.enabled:
            return

        try:
            fields = self._build_fields(entry, request)
            with transaction.atomic():
                from .models import SecurityAuditLog

                SecurityAuditLog.objects.create(**fields)
        except Exception as e:
            logger.error(f"Failed to create audit log ({entry.action.value} {entry.entity_type}): {e}")

    def _build_fields(self, entry: AuditLogEntry, request) -> dict:
        fields = {
            "action": entry.action.value,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "user_id": entry.user_id,
            "user_email": entry.user_email,
            "lab_id": entry.lab_id,
            "authorization_method": entry.authorization_method,
            "required_permission": entry.required_permission,
            "was_authorized": entry.was_authorized,
            "details": entry.details,
            "error_message": entry.error_message,
            "ip_address": entry.ip_address,
            "user_agent": entry.user_agent,
            "endpoint": entry.endpoint,
            "http_method": entry.http_method,
            "session_id": entry.session_id,
        }
        if request is not None:
            for key, value in request_metadata(request).items():
                if not fields.get(key):
                    fields[key] = value
        return fields


# =============================================================================
# HELPERS
# =============================================================================


def _default_sink(sink):
    return sink if sink is not None else DatabaseAuditSink()


def log_delete_attempt(request, entity_type, entity_id, authorized, method="", error="", sink=None):
    """Record a delete attempt, successful or not."""
    _default_sink(sink).record(
        AuditLogEntry(
            action=AuditAction.DELETE,
            entity_type=str(getattr(entity_type, "value", entity_type)),
            entity_id=str(entity_id),
            authorization_method=method,
            was_authorized=authorized,
            error_message=error,
            details={} if authorized else {"reason": "Ownership or admin validation failed"},
        ),
        request,
    )


def log_access_denied(request, entity_type, reason, entity_id=None, sink=None):
    """Record an access denial with the denied endpoint."""
    _default_sink(sink).record(
        AuditLogEntry(
            action=AuditAction.ACCESS_DENIED,
            entity_type=str(getattr(entity_type, "value", entity_type)),
            entity_id=str(entity_id) if entity_id is not None else None,
            was_authorized=False,
            error_message=reason,
            details={"deniedResource": request.get_full_path()},
        ),
        request,
    )


def log_successful_delete(request, entity_type, entity_id, method, sink=None):
    """Record a completed deletion and how it was authorized."""
    _default_sink(sink).record(
        AuditLogEntry(
            action=AuditAction.DELETE,
            entity_type=str(getattr(entity_type, "value", entity_type)),
            entity_id=str(entity_id),
            authorization_method=method,
            was_authorized=True,
            details={"deletionMethod": method},
        ),
        request,
    )
