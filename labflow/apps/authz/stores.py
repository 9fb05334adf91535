# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Grant stores: where the engine reads grants from.

The engine only talks to the GrantStore protocol. DjangoGrantStore is the
ORM implementation; it turns model rows into the immutable records of
apps.authz.types and reports database errors as StoreFailure.

Nothing is cached between calls: every check sees the current rows.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Protocol

from django.apps import apps as django_apps
from django.db import DatabaseError
from django.utils import timezone

from apps.common.permissions import CAPABILITIES, TEMPLATE_FLAGS

from .exceptions import StoreFailure
from .types import (
    CrossLabGrant,
    EntityType,
    GrantStatus,
    MembershipGrant,
    ResourceGrant,
    TemplateRecord,
)

logger = logging.getLogger(__name__)


class GrantStore(Protocol):
    """
    Read and write operations the engine and template service depend on.

    get_entity_owner returns None when the entity does not exist and ""
    when it exists without an owner.
    """

    def get_entity_owner(self, entity_type: EntityType, entity_id: str) -> str | None: ...

    def get_lab_membership(self, user_id: str, lab_id: str) -> MembershipGrant | None: ...

    def get_resource_permissions(
        self, user_id: str, entity_type: EntityType, entity_id: str
    ) -> list[ResourceGrant]: ...

    def get_cross_lab_access(self, user_id: str, lab_id: str) -> list[CrossLabGrant]: ...

    def get_permission_template(self, template_id: str) -> TemplateRecord | None: ...

    def get_default_template(self, lab_id: str, key: str) -> TemplateRecord | None: ...

    def set_lab_membership_capabilities(self, user_id: str, lab_id: str, capabilities: dict) -> bool: ...

    def list_active_memberships(self, lab_id: str) -> list[MembershipGrant]: ...


def _as_uuid(value) -> uuid.UUID | None:
    """Parse an identifier; malformed ids match nothing."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


@contextmanager
def _query(operation: str):
    try:
        yield
    except DatabaseError as e:
        logger.error(f"Grant store query {operation} failed: {e}")
        raise StoreFailure(operation, e) from e


def membership_to_grant(membership) -> MembershipGrant:
    return MembershipGrant(
        user_id=str(membership.user_id),
        lab_id=str(membership.lab_id),
        role=membership.lab_role,
        is_active=membership.is_active,
        is_admin=membership.is_admin,
        is_super_admin=membership.is_super_admin,
        access_start_date=membership.access_start_date,
        access_end_date=membership.access_end_date,
        capabilities=frozenset(name for name in CAPABILITIES if getattr(membership, name)),
    )


def template_to_record(template) -> TemplateRecord:
    capabilities = template.capabilities if isinstance(template.capabilities, dict) else {}
    return TemplateRecord(
        id=str(template.pk),
        lab_id=str(template.lab_id) if template.lab_id else None,
        name=template.name,
        key=template.key,
        is_active=template.is_active,
        is_default=template.is_default,
        capabilities={str(flag): bool(value) for flag, value in capabilities.items()},
    )


class DjangoGrantStore:
    """GrantStore backed by the apps.labs and apps.research models."""

    def get_entity_owner(self, entity_type: EntityType, entity_id: str) -> str | None:
        if not entity_type.is_ownable:
            return None
        pk = _as_uuid(entity_id)
        if pk is None:
            return None

        model = django_apps.get_model(entity_type.model_label)
        owner_attname = model._meta.get_field(entity_type.owner_field).attname
        with _query("get_entity_owner"):
            rows = list(model.objects.filter(pk=pk).values_list(owner_attname, flat=True)[:1])
        if not rows:
            return None
        return str(rows[0]) if rows[0] is not None else ""

    def get_lab_membership(self, user_id: str, lab_id: str) -> MembershipGrant | None:
        from apps.labs.models import LabMembership

        user_pk, lab_pk = _as_uuid(user_id), _as_uuid(lab_id)
        if user_pk is None or lab_pk is None:
            return None
        with _query("get_lab_membership"):
            membership = LabMembership.objects.filter(user_id=user_pk, lab_id=lab_pk).first()
        return membership_to_grant(membership) if membership else None

    def get_resource_permissions(self, user_id: str, entity_type: EntityType, entity_id: str) -> list[ResourceGrant]:
        from apps.labs.models import ResourcePermission

        user_pk = _as_uuid(user_id)
        if user_pk is None:
            return []
        with _query("get_resource_permissions"):
            rows = list(
                ResourcePermission.objects.filter(
                    user_id=user_pk,
                    entity_type=entity_type.value,
                    entity_id=str(entity_id),
                )
            )
        return [
            ResourceGrant(
                id=str(row.pk),
                user_id=str(row.user_id),
                entity_type=EntityType(row.entity_type),
                entity_id=row.entity_id,
                valid_from=row.valid_from,
                valid_until=row.valid_until,
                revoked_at=row.revoked_at,
                can_view=row.can_view,
                can_edit=row.can_edit,
                can_delete=row.can_delete,
                can_share=row.can_share,
                can_assign=row.can_assign,
            )
            for row in rows
        ]

    def get_cross_lab_access(self, user_id: str, lab_id: str) -> list[CrossLabGrant]:
        from apps.labs.models import CrossLabAccess

        user_pk, lab_pk = _as_uuid(user_id), _as_uuid(lab_id)
        if user_pk is None or lab_pk is None:
            return []
        with _query("get_cross_lab_access"):
            rows = list(CrossLabAccess.objects.filter(user_id=user_pk, target_lab_id=lab_pk))
        return [
            CrossLabGrant(
                id=str(row.pk),
                user_id=str(row.user_id),
                target_lab_id=str(row.target_lab_id),
                status=GrantStatus(row.status),
                valid_from=row.valid_from,
                valid_until=row.valid_until,
                revoked_at=row.revoked_at,
                can_view_projects=row.can_view_projects,
                can_edit_shared_projects=row.can_edit_shared_projects,
                can_join_meetings=row.can_join_meetings,
                can_view_reports=row.can_view_reports,
            )
            for row in rows
        ]

    def get_permission_template(self, template_id: str) -> TemplateRecord | None:
        from apps.labs.models import PermissionTemplate

        pk = _as_uuid(template_id)
        if pk is None:
            return None
        with _query("get_permission_template"):
            template = PermissionTemplate.objects.filter(pk=pk).first()
        return template_to_record(template) if template else None

    def get_default_template(self, lab_id: str, key: str) -> TemplateRecord | None:
        from apps.labs.models import PermissionTemplate

        lab_pk = _as_uuid(lab_id)
        if lab_pk is None:
            return None
        with _query("get_default_template"):
            template = (
                PermissionTemplate.objects.filter(lab_id=lab_pk, key=key, is_default=True, is_active=True)
                .order_by("created_at")
                .first()
            )
        return template_to_record(template) if template else None

    def set_lab_membership_capabilities(self, user_id: str, lab_id: str, capabilities: dict) -> bool:
        """
        Overwrite the whole flag bundle of a membership.

        Flags missing from `capabilities` are switched off. Returns False
        when no such membership exists.
        """
        from apps.labs.models import LabMembership

        user_pk, lab_pk = _as_uuid(user_id), _as_uuid(lab_id)
        if user_pk is None or lab_pk is None:
            return False
        bundle = {flag: bool(capabilities.get(flag, False)) for flag in TEMPLATE_FLAGS}
        with _query("set_lab_membership_capabilities"):
            updated = LabMembership.objects.filter(user_id=user_pk, lab_id=lab_pk).update(
                updated_at=timezone.now(),
                **bundle,
            )
        return updated > 0

    def list_active_memberships(self, lab_id: str) -> list[MembershipGrant]:
        from apps.labs.models import LabMembership

        lab_pk = _as_uuid(lab_id)
        if lab_pk is None:
            return []
        with _query("list_active_memberships"):
            rows = list(LabMembership.objects.filter(lab_id=lab_pk, is_active=True).order_by("joined_at"))
        return [membership_to_grant(row) for row in rows]
