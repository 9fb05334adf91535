# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Permission template service.

Applies capability bundles to lab memberships:
- apply_template: a named template picked by an administrator
- apply_default_capabilities: the default bundle of a member's role
- upgrade_all: re-apply role defaults to every active member of a lab
- create_default_templates: seed a lab with the built-in templates

Applying a bundle always overwrites every flag of the membership.
The public methods never raise; failures are logged and reported as
False (or a count of 0).
"""

import logging

from apps.audit.entries import LAB_MEMBER, AuditAction, AuditLogEntry
from apps.common.permissions import (
    ADMIN_FLAGS,
    DEFAULT_TEMPLATES,
    build_capability_bundle,
    default_template_key_for_role,
)

from .types import normalize_id

logger = logging.getLogger(__name__)

ADMIN_REQUIRED_REASON = "Template requires a lab administrator"


class PermissionTemplateService:
    """Apply permission templates to lab members."""

    def __init__(self, store=None, sink=None):
        if store is None:
            from .stores import DjangoGrantStore

            store = DjangoGrantStore()
        if sink is None:
            from apps.audit.sink import DatabaseAuditSink

            sink = DatabaseAuditSink()
        self.store = store
        self.sink = sink

    def apply_template(self, user_id, lab_id, template_id, applied_by=None, request=None) -> bool:
        """
        Overwrite a membership's flags with a template's bundle.

        Returns False (without touching the membership) when the template
        is missing, inactive or belongs to another lab, or when the user
        is not a member of the lab. Applying an admin template, or any
        template to oneself, requires applied_by to be a lab administrator;
        applied_by=None is a system change and is not checked.
        """
        try:
            template = self.store.get_permission_template(str(template_id))
            if template is None or not template.is_active:
                logger.warning(f"Permission template {template_id} not found or inactive")
                return False
            if template.lab_id is not None and template.lab_id != str(lab_id):
                logger.warning(f"Permission template {template_id} belongs to another lab")
                return False
            if applied_by is not None and not self._may_apply(template, user_id, lab_id, applied_by):
                logger.warning(
                    f"User {applied_by} may not apply template '{template.name}' to user {user_id} in lab {lab_id}"
                )
                self._record(
                    AuditLogEntry(
                        action=AuditAction.ACCESS_DENIED,
                        entity_type=LAB_MEMBER,
                        entity_id=f"{user_id}-{lab_id}",
                        user_id=str(applied_by),
                        lab_id=str(lab_id),
                        authorization_method="admin",
                        was_authorized=False,
                        error_message=ADMIN_REQUIRED_REASON,
                        details={"templateApplied": template.name, "targetUser": str(user_id)},
                    ),
                    request,
                )
                return False

            updated = self.store.set_lab_membership_capabilities(str(user_id), str(lab_id), template.capabilities)
            if not updated:
                logger.warning(f"No membership for user {user_id} in lab {lab_id}")
                return False

            self._record(
                AuditLogEntry(
                    action=AuditAction.PERMISSION_CHANGE,
                    entity_type=LAB_MEMBER,
                    entity_id=f"{user_id}-{lab_id}",
                    user_id=str(applied_by) if applied_by is not None else None,
                    lab_id=str(lab_id),
                    authorization_method="admin",
                    was_authorized=True,
                    details={
                        "templateApplied": template.name,
                        "targetUser": str(user_id),
                        "permissionCount": len(template.capabilities),
                    },
                ),
                request,
            )
            logger.info(f"Applied template '{template.name}' to user {user_id} in lab {lab_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to apply permission template {template_id}: {e}")
            return False

    def apply_default_capabilities(self, user_id, lab_id, role, applied_by=None) -> bool:
        """
        Apply the default bundle for a lab role.

        The lab's own default template for the role wins; without one the
        built-in bundle is used. Unknown roles get the research assistant
        bundle.
        """
        key = default_template_key_for_role(role)
        try:
            template = self.store.get_default_template(str(lab_id), key)
            capabilities = template.capabilities if template is not None else build_capability_bundle(key)

            updated = self.store.set_lab_membership_capabilities(str(user_id), str(lab_id), capabilities)
            if not updated:
                logger.warning(f"No membership for user {user_id} in lab {lab_id}")
                return False

            self._record(
                AuditLogEntry(
                    action=AuditAction.PERMISSION_CHANGE,
                    entity_type=LAB_MEMBER,
                    entity_id=f"{user_id}-{lab_id}",
                    user_id=str(applied_by if applied_by is not None else user_id),
                    lab_id=str(lab_id),
                    authorization_method="system",
                    was_authorized=True,
                    details={
                        "defaultPermissionsApplied": True,
                        "role": role,
                        "templateKey": key,
                        "permissionCount": len(capabilities),
                    },
                )
            )
            logger.info(f"Applied default {role} permissions to user {user_id} in lab {lab_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to apply default permissions to user {user_id} in lab {lab_id}: {e}")
            return False

    def upgrade_all(self, lab_id) -> int:
        """
        Re-apply role defaults to every active member of a lab.

        Members are processed one after another; a failing member is
        logged and skipped. Returns the number of members upgraded.
        """
        try:
            memberships = self.store.list_active_memberships(str(lab_id))
        except Exception as e:
            logger.error(f"Failed to list members of lab {lab_id}: {e}")
            return 0

        upgraded = 0
        for membership in memberships:
            if self.apply_default_capabilities(membership.user_id, lab_id, membership.role):
                upgraded += 1

        logger.info(f"Upgraded permissions for {upgraded} of {len(memberships)} lab members in lab {lab_id}")
        return upgraded

    def create_default_templates(self, lab, created_by=None, force=False) -> list:
        """
        Create the built-in templates for a lab.

        Existing templates (matched by name) are left alone unless
        force is set, in which case their bundle is reset.
        Returns the templates created or reset.
        """
        from apps.labs.models import PermissionTemplate

        touched = []
        for key, info in DEFAULT_TEMPLATES.items():
            values = {
                "key": key,
                "description": info["description"],
                "capabilities": build_capability_bundle(key),
                "is_active": True,
                "is_default": True,
            }
            template, created = PermissionTemplate.objects.get_or_create(
                lab=lab,
                name=info["name"],
                defaults={**values, "created_by": created_by},
            )
            if created:
                touched.append(template)
            elif force:
                for field, value in values.items():
                    setattr(template, field, value)
                template.save()
                touched.append(template)

        logger.info(f"Created or reset {len(touched)} default permission templates for lab {lab.name}")
        return touched

    def _record(self, entry: AuditLogEntry, request=None) -> None:
        try:
            self.sink.record(entry, request)
        except Exception as e:
            logger.error(f"Audit sink failed: {e}")

    def _may_apply(self, template, user_id, lab_id, applied_by) -> bool:
        """
        Only lab administrators may apply a template that grants admin
        flags, or apply any template to their own membership.
        """
        grants_admin = any(template.capabilities.get(flag) for flag in ADMIN_FLAGS)
        if not grants_admin and normalize_id(applied_by) != normalize_id(user_id):
            return True
        applier = self.store.get_lab_membership(str(applied_by), str(lab_id))
        return applier is not None and applier.is_active and (applier.is_admin or applier.is_super_admin)
