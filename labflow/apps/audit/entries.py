# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Audit entry value types.

Kept free of ORM imports so the engine can describe what to record
without a database.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AuditAction(str, Enum):
    """Security event recorded in the audit trail."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    ACCESS_DENIED = "ACCESS_DENIED"
    PERMISSION_CHECK = "PERMISSION_CHECK"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        return [(member.value, member.value.replace("_", " ").title()) for member in cls]


# Entity types that only appear in the audit trail
LAB_MEMBER = "LAB_MEMBER"
PERMISSION_TEMPLATE = "PERMISSION_TEMPLATE"


@dataclass(frozen=True)
class AuditLogEntry:
    """
    One security event.

    Request metadata (ip_address ... session_id) is normally left empty
    and filled in by the sink from the current request.
    """

    action: AuditAction
    entity_type: str
    was_authorized: bool
    entity_id: str | None = None
    user_id: str | None = None
    user_email: str = ""
    lab_id: str | None = None
    authorization_method: str = ""
    required_permission: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    error_message: str = ""

    # Request metadata
    ip_address: str | None = None
    user_agent: str = ""
    endpoint: str = ""
    http_method: str = ""
    session_id: str = ""
