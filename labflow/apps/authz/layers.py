# SPDX-License-Identifier: AGPL-3.0-or-later
"""
The four authorization layers as pure functions.

Each evaluator receives the request context, the grant data already
fetched from the store and the current time, and returns a
PermissionResult. No evaluator touches the database; the engine
(apps.authz.engine) does the fetching and reduces the results in order.

Layer order:
1. Ownership (blanket grant on the user's own records)
2. Lab role (membership window, admin override, capability table)
3. Resource permission (per-entity grants, only when requested)
4. Cross-lab access (approved grants into another lab)
"""

from datetime import datetime
from typing import Iterable

from .capabilities import capability_for
from .types import (
    Action,
    AuthMethod,
    CrossLabGrant,
    GrantStatus,
    MembershipGrant,
    PermissionContext,
    PermissionResult,
    ResourceGrant,
    Validity,
)
from .validity import grant_validity, membership_validity

# Failure reason per layer when its store query raised
LAYER_FAILURE_REASONS = {
    AuthMethod.OWNERSHIP: "Ownership check failed",
    AuthMethod.LAB_ROLE: "Lab role permission check failed",
    AuthMethod.RESOURCE_PERMISSION: "Resource permission check failed",
    AuthMethod.CROSS_LAB_ACCESS: "Cross-lab access check failed",
}

# Resource grant flag per action; actions not listed never match
RESOURCE_ACTION_FLAGS = {
    Action.VIEW: "can_view",
    Action.EDIT: "can_edit",
    Action.DELETE: "can_delete",
    Action.SHARE: "can_share",
    Action.ASSIGN: "can_assign",
}

# Cross-lab grant flag per action; only View and Edit are mapped
CROSS_LAB_ACTION_FLAGS = {
    Action.VIEW: "can_view_projects",
    Action.EDIT: "can_edit_shared_projects",
}

_INVALID_ORDER = (Validity.NOT_YET_VALID, Validity.EXPIRED, Validity.REVOKED)


def layer_failure(method: AuthMethod) -> PermissionResult:
    return PermissionResult(False, LAYER_FAILURE_REASONS[method], method)


def _temporal_reason(prefix: str, validities: Iterable[Validity]) -> str | None:
    """Reason for a set of grants none of which is currently valid."""
    seen = set(validities)
    for validity in _INVALID_ORDER:
        if validity in seen:
            return {
                Validity.NOT_YET_VALID: f"{prefix} not yet valid",
                Validity.EXPIRED: f"{prefix} has expired",
                Validity.REVOKED: f"{prefix} has been revoked",
            }[validity]
    return None


# =============================================================================
# LAYER 1: OWNERSHIP
# =============================================================================


def evaluate_ownership(context: PermissionContext, owner_id: str | None) -> PermissionResult:
    """
    Compare the entity owner with the requesting user.

    owner_id is None when the entity does not exist (or its type has no
    owner). Ownership authorizes every action on the entity.
    """
    if owner_id is None:
        return PermissionResult(False, "Entity not found", AuthMethod.OWNERSHIP)
    if str(owner_id) == context.user_id:
        return PermissionResult(True, "User owns this entity", AuthMethod.OWNERSHIP)
    return PermissionResult(False, "User does not own this entity", AuthMethod.OWNERSHIP)


# =============================================================================
# LAYER 2: LAB ROLE
# =============================================================================


def evaluate_lab_role(
    context: PermissionContext,
    membership: MembershipGrant | None,
    now: datetime,
) -> PermissionResult:
    method = AuthMethod.LAB_ROLE

    if membership is None or not membership.is_active:
        return PermissionResult(False, "User not a member of this lab", method)

    window = membership_validity(membership.access_start_date, membership.access_end_date, now)
    if window is Validity.NOT_YET_VALID:
        return PermissionResult(False, "Access not yet valid", method)
    if window is Validity.EXPIRED:
        return PermissionResult(False, "Access has expired", method)

    if membership.is_admin or membership.is_super_admin:
        return PermissionResult(True, "Administrator privileges", method)

    entity = context.entity_type.label
    action = context.action.label
    capability = capability_for(context.entity_type, context.action)
    if capability and membership.has_capability(capability):
        return PermissionResult(True, f"Lab role permits {entity} {action}", method)

    reason = f"Insufficient {entity} {action} permissions"
    if capability:
        reason = f"{reason} (requires {capability})"
    return PermissionResult(False, reason, method)


# =============================================================================
# LAYER 3: RESOURCE PERMISSION
# =============================================================================


def evaluate_resource_permissions(
    context: PermissionContext,
    grants: list[ResourceGrant],
    now: datetime,
) -> PermissionResult:
    """Any valid grant carrying the action's flag authorizes."""
    method = AuthMethod.RESOURCE_PERMISSION

    if not grants:
        return PermissionResult(False, "No resource-specific permissions found", method)

    flag = RESOURCE_ACTION_FLAGS.get(context.action)
    validities = []
    for grant in grants:
        validity = grant_validity(grant.valid_from, grant.valid_until, grant.revoked_at, now)
        validities.append(validity)
        if validity is Validity.VALID and flag and getattr(grant, flag):
            return PermissionResult(
                True,
                f"Resource-specific {context.action.label} permission granted",
                method,
            )

    if Validity.VALID not in validities:
        return PermissionResult(False, _temporal_reason("Resource permission", validities), method)
    return PermissionResult(False, "No valid resource permission for this action", method)


# =============================================================================
# LAYER 4: CROSS-LAB ACCESS
# =============================================================================


def cross_lab_restrictions(grant: CrossLabGrant) -> tuple[str, ...]:
    """Caveats of a winning cross-lab grant, in fixed order."""
    restrictions = []
    if not grant.can_edit_shared_projects:
        restrictions.append("Read-only access")
    if not grant.can_join_meetings:
        restrictions.append("Cannot join meetings")
    if not grant.can_view_reports:
        restrictions.append("Cannot view reports")
    return tuple(restrictions)


def evaluate_cross_lab_access(
    context: PermissionContext,
    grants: list[CrossLabGrant],
    now: datetime,
) -> PermissionResult:
    """Only APPROVED, currently valid grants are considered."""
    method = AuthMethod.CROSS_LAB_ACCESS

    if not grants:
        return PermissionResult(False, "No cross-lab access found", method)

    flag = CROSS_LAB_ACTION_FLAGS.get(context.action)
    validities = []
    for grant in grants:
        if grant.status is not GrantStatus.APPROVED:
            continue
        validity = grant_validity(grant.valid_from, grant.valid_until, grant.revoked_at, now)
        validities.append(validity)
        if validity is Validity.VALID and flag and getattr(grant, flag):
            return PermissionResult(
                True,
                f"Cross-lab {context.action.label} access granted",
                method,
                cross_lab_restrictions(grant),
            )

    if validities and Validity.VALID not in validities:
        return PermissionResult(False, _temporal_reason("Cross-lab access", validities), method)
    return PermissionResult(False, "Cross-lab access does not permit this action", method)
