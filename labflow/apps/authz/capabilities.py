# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Static (entity type, action) -> membership capability table.

Pairs missing from the table never authorize through the lab-role layer;
they can only be granted by ownership, a resource permission, cross-lab
access or an administrator membership.
"""

from apps.common.permissions import CAPABILITIES

from .types import Action, EntityType

CAPABILITY_KEYS: dict[tuple[EntityType, Action], str] = {
    # Studies (projects)
    (EntityType.STUDY, Action.CREATE): "can_create_projects",
    (EntityType.STUDY, Action.EDIT): "can_edit_all_projects",
    (EntityType.STUDY, Action.DELETE): "can_delete_projects",
    (EntityType.STUDY, Action.VIEW): "can_view_all_projects",
    (EntityType.STUDY, Action.SHARE): "can_share_across_labs",
    (EntityType.STUDY, Action.EXPORT): "can_export_data",
    # Tasks
    (EntityType.TASK, Action.ASSIGN): "can_assign_tasks",
    (EntityType.TASK, Action.EDIT): "can_edit_all_tasks",
    (EntityType.TASK, Action.DELETE): "can_delete_tasks",
    (EntityType.TASK, Action.VIEW): "can_view_all_tasks",
    (EntityType.TASK, Action.EXPORT): "can_export_data",
    # Ideas
    (EntityType.IDEA, Action.EDIT): "can_edit_all_ideas",
    (EntityType.IDEA, Action.DELETE): "can_delete_ideas",
    # Deadlines
    (EntityType.DEADLINE, Action.CREATE): "can_manage_deadlines",
    (EntityType.DEADLINE, Action.EDIT): "can_manage_deadlines",
    (EntityType.DEADLINE, Action.DELETE): "can_manage_deadlines",
    # Lab
    (EntityType.LAB, Action.EDIT): "can_manage_lab_settings",
    (EntityType.LAB, Action.EXPORT): "can_export_data",
    # Members
    (EntityType.USER, Action.CREATE): "can_manage_members",
    (EntityType.USER, Action.EDIT): "can_manage_members",
    (EntityType.USER, Action.DELETE): "can_manage_members",
    (EntityType.USER, Action.ASSIGN): "can_manage_permissions",
}

_unknown = sorted(set(CAPABILITY_KEYS.values()) - set(CAPABILITIES))
if _unknown:
    raise ImportError(f"Capability table references unknown capabilities: {', '.join(_unknown)}")


def capability_for(entity_type: EntityType, action: Action) -> str | None:
    """Capability flag required for the pair, or None if unmapped."""
    return CAPABILITY_KEYS.get((entity_type, action))
