# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Value types for the authorization engine.

Everything here is plain Python (no ORM access) so layer evaluation can be
exercised without a database. The store boundary (apps.authz.stores)
turns model rows into the grant records defined below.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EntityType(str, Enum):
    """Entity types a permission check can target."""

    BUCKET = "BUCKET"
    STUDY = "STUDY"
    TASK = "TASK"
    IDEA = "IDEA"
    DEADLINE = "DEADLINE"
    LAB = "LAB"
    USER = "USER"

    @property
    def label(self) -> str:
        return self.value.lower()

    @property
    def model_label(self) -> str | None:
        """Django model holding records of this type (None = not ownable)."""
        return _OWNED_MODELS.get(self, (None, None))[0]

    @property
    def owner_field(self) -> str | None:
        """Field on the record naming its owner."""
        return _OWNED_MODELS.get(self, (None, None))[1]

    @property
    def is_ownable(self) -> bool:
        return self in _OWNED_MODELS

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        return [(member.value, member.value.title()) for member in cls]


# (model label, owner field) per ownable entity type
_OWNED_MODELS = {
    EntityType.BUCKET: ("research.Bucket", "created_by"),
    EntityType.STUDY: ("research.Study", "created_by"),
    EntityType.TASK: ("research.Task", "created_by"),
    EntityType.IDEA: ("research.Idea", "proposed_by"),
    EntityType.DEADLINE: ("research.Deadline", "created_by"),
}


class Action(str, Enum):
    """Actions a permission check can ask for."""

    VIEW = "VIEW"
    CREATE = "CREATE"
    EDIT = "EDIT"
    DELETE = "DELETE"
    ASSIGN = "ASSIGN"
    SHARE = "SHARE"
    EXPORT = "EXPORT"

    @property
    def label(self) -> str:
        return self.value.lower()


class AuthMethod(str, Enum):
    """Authorization layer that produced a decision."""

    OWNERSHIP = "ownership"
    LAB_ROLE = "lab_role"
    RESOURCE_PERMISSION = "resource_permission"
    CROSS_LAB_ACCESS = "cross_lab_access"


class GrantStatus(str, Enum):
    """Approval status of a cross-lab access grant."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVOKED = "REVOKED"

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        return [(member.value, member.value.title()) for member in cls]


class Validity(str, Enum):
    """Temporal state of a membership window or grant."""

    VALID = "valid"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    REVOKED = "revoked"


# =============================================================================
# REQUEST / RESULT
# =============================================================================


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    return enum_cls(str(value).upper())


def normalize_id(value) -> str:
    """Canonical form of an identifier; UUIDs in any spelling compare equal."""
    text = str(value).strip()
    try:
        return str(uuid.UUID(text))
    except ValueError:
        return text


@dataclass(frozen=True)
class PermissionContext:
    """
    The (user, lab, entity, action) tuple being authorized.

    entity_id is None for creation-type checks; resource_specific enables
    the resource-permission layer.
    """

    user_id: str
    lab_id: str
    entity_type: EntityType
    action: Action
    entity_id: str | None = None
    resource_specific: bool = False

    def __post_init__(self):
        # Accept "TASK" / "edit" style strings from callers
        object.__setattr__(self, "user_id", normalize_id(self.user_id))
        object.__setattr__(self, "lab_id", normalize_id(self.lab_id))
        object.__setattr__(self, "entity_type", _coerce(EntityType, self.entity_type))
        object.__setattr__(self, "action", _coerce(Action, self.action))
        if self.entity_id is not None:
            object.__setattr__(self, "entity_id", normalize_id(self.entity_id))


@dataclass(frozen=True)
class PermissionResult:
    """Outcome of a permission check (or of a single layer)."""

    allowed: bool
    reason: str
    method: AuthMethod
    restrictions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "method": self.method.value,
            "restrictions": list(self.restrictions),
        }


# =============================================================================
# GRANT RECORDS (validated at the store boundary)
# =============================================================================


@dataclass(frozen=True)
class MembershipGrant:
    """A user's membership in one lab."""

    user_id: str
    lab_id: str
    role: str
    is_active: bool
    is_admin: bool = False
    is_super_admin: bool = False
    access_start_date: datetime | None = None
    access_end_date: datetime | None = None
    capabilities: frozenset[str] = frozenset()

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class ResourceGrant:
    """A narrow grant on a single entity."""

    id: str
    user_id: str
    entity_type: EntityType
    entity_id: str
    valid_from: datetime
    valid_until: datetime | None = None
    revoked_at: datetime | None = None
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_share: bool = False
    can_assign: bool = False


@dataclass(frozen=True)
class CrossLabGrant:
    """A grant letting a user act inside another lab."""

    id: str
    user_id: str
    target_lab_id: str
    status: GrantStatus
    valid_from: datetime
    valid_until: datetime | None = None
    revoked_at: datetime | None = None
    can_view_projects: bool = False
    can_edit_shared_projects: bool = False
    can_join_meetings: bool = False
    can_view_reports: bool = False


@dataclass(frozen=True)
class TemplateRecord:
    """A permission template as seen by the template service."""

    id: str
    lab_id: str | None
    name: str
    key: str
    is_active: bool
    is_default: bool
    capabilities: dict[str, bool] = field(default_factory=dict)
