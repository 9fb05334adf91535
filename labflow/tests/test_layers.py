"""
Tests for the pure layer evaluators, validity rules and capability table.

No database access.
"""

import uuid
from datetime import timedelta

import pytest

from apps.authz.capabilities import CAPABILITY_KEYS, capability_for
from apps.authz.layers import (
    cross_lab_restrictions,
    evaluate_cross_lab_access,
    evaluate_lab_role,
    evaluate_ownership,
    evaluate_resource_permissions,
)
from apps.authz.types import (
    Action,
    AuthMethod,
    CrossLabGrant,
    EntityType,
    GrantStatus,
    MembershipGrant,
    PermissionContext,
    ResourceGrant,
    Validity,
)
from apps.authz.validity import grant_validity, membership_validity
from apps.common.permissions import CAPABILITIES


def make_context(entity_type="STUDY", action="VIEW", entity_id=None, resource_specific=False):
    return PermissionContext(
        user_id="u1",
        lab_id="lab1",
        entity_type=entity_type,
        action=action,
        entity_id=entity_id,
        resource_specific=resource_specific,
    )


def make_membership(capabilities=(), **fields):
    fields.setdefault("is_active", True)
    return MembershipGrant(
        user_id="u1",
        lab_id="lab1",
        role="RESEARCH_ASSISTANT",
        capabilities=frozenset(capabilities),
        **fields,
    )


def make_resource_grant(valid_from, **fields):
    return ResourceGrant(
        id=fields.pop("id", "g1"),
        user_id="u1",
        entity_type=EntityType.TASK,
        entity_id="T1",
        valid_from=valid_from,
        **fields,
    )


def make_cross_lab_grant(valid_from, status=GrantStatus.APPROVED, **fields):
    return CrossLabGrant(
        id=fields.pop("id", "c1"),
        user_id="u1",
        target_lab_id="lab1",
        status=status,
        valid_from=valid_from,
        **fields,
    )


class TestPermissionContext:
    def test_accepts_string_names(self):
        context = make_context(entity_type="task", action="edit", entity_id=42)
        assert context.entity_type is EntityType.TASK
        assert context.action is Action.EDIT
        assert context.entity_id == "42"

    def test_uuid_spellings_are_normalized(self):
        user_id = uuid.uuid4()
        entity_id = uuid.uuid4()
        context = PermissionContext(
            user_id=str(user_id).upper(),
            lab_id=user_id.hex,
            entity_type="TASK",
            action="EDIT",
            entity_id=f" {str(entity_id).upper()} ",
        )
        assert context.user_id == str(user_id)
        assert context.lab_id == str(user_id)
        assert context.entity_id == str(entity_id)

    def test_owner_matches_upper_case_user_id(self):
        owner = uuid.uuid4()
        context = PermissionContext(str(owner).upper(), "lab1", "STUDY", "EDIT", entity_id="S1")
        assert evaluate_ownership(context, str(owner)).allowed

    def test_rejects_unknown_entity_type(self):
        with pytest.raises(ValueError):
            make_context(entity_type="MEETING")

    def test_result_to_dict(self, now):
        grant = make_cross_lab_grant(now - timedelta(days=1), can_view_projects=True)
        result = evaluate_cross_lab_access(make_context(), [grant], now)
        assert result.to_dict() == {
            "allowed": True,
            "reason": "Cross-lab view access granted",
            "method": "cross_lab_access",
            "restrictions": ["Read-only access", "Cannot join meetings", "Cannot view reports"],
        }


class TestEntityTypes:
    def test_owner_fields(self):
        assert EntityType.IDEA.owner_field == "proposed_by"
        for entity_type in (EntityType.BUCKET, EntityType.STUDY, EntityType.TASK, EntityType.DEADLINE):
            assert entity_type.owner_field == "created_by"

    def test_lab_and_user_are_not_ownable(self):
        assert not EntityType.LAB.is_ownable
        assert not EntityType.USER.is_ownable
        assert EntityType.USER.model_label is None


class TestCapabilityTable:
    def test_core_mapping(self):
        assert capability_for(EntityType.STUDY, Action.CREATE) == "can_create_projects"
        assert capability_for(EntityType.STUDY, Action.EDIT) == "can_edit_all_projects"
        assert capability_for(EntityType.STUDY, Action.DELETE) == "can_delete_projects"
        assert capability_for(EntityType.STUDY, Action.VIEW) == "can_view_all_projects"
        assert capability_for(EntityType.TASK, Action.ASSIGN) == "can_assign_tasks"
        assert capability_for(EntityType.TASK, Action.EDIT) == "can_edit_all_tasks"
        assert capability_for(EntityType.TASK, Action.DELETE) == "can_delete_tasks"
        assert capability_for(EntityType.TASK, Action.VIEW) == "can_view_all_tasks"
        assert capability_for(EntityType.IDEA, Action.EDIT) == "can_edit_all_ideas"
        assert capability_for(EntityType.IDEA, Action.DELETE) == "can_delete_ideas"
        assert capability_for(EntityType.DEADLINE, Action.EDIT) == "can_manage_deadlines"
        assert capability_for(EntityType.DEADLINE, Action.DELETE) == "can_manage_deadlines"

    def test_unmapped_pair(self):
        assert capability_for(EntityType.IDEA, Action.VIEW) is None
        assert capability_for(EntityType.BUCKET, Action.DELETE) is None

    def test_every_value_is_a_capability(self):
        assert set(CAPABILITY_KEYS.values()) <= set(CAPABILITIES)


class TestValidity:
    def test_membership_window_open_bounds(self, now):
        assert membership_validity(None, None, now) is Validity.VALID

    def test_membership_window_inclusive(self, now):
        assert membership_validity(now, now, now) is Validity.VALID

    def test_membership_window_not_yet_valid(self, now, tomorrow):
        assert membership_validity(tomorrow, None, now) is Validity.NOT_YET_VALID

    def test_membership_window_expired(self, now, yesterday):
        assert membership_validity(None, yesterday, now) is Validity.EXPIRED

    def test_revocation_wins_over_window(self, now, yesterday, tomorrow):
        assert grant_validity(yesterday, tomorrow, yesterday, now) is Validity.REVOKED


class TestOwnershipLayer:
    def test_owner_is_allowed(self):
        result = evaluate_ownership(make_context(entity_id="S1"), "u1")
        assert result.allowed
        assert result.method is AuthMethod.OWNERSHIP
        assert result.reason == "User owns this entity"

    def test_missing_entity(self):
        result = evaluate_ownership(make_context(entity_id="S1"), None)
        assert not result.allowed
        assert result.reason == "Entity not found"

    def test_other_owner(self):
        result = evaluate_ownership(make_context(entity_id="S1"), "u2")
        assert not result.allowed
        assert result.reason == "User does not own this entity"

    def test_record_without_owner(self):
        result = evaluate_ownership(make_context(entity_id="S1"), "")
        assert result.reason == "User does not own this entity"


class TestLabRoleLayer:
    def test_no_membership(self, now):
        result = evaluate_lab_role(make_context(), None, now)
        assert not result.allowed
        assert result.reason == "User not a member of this lab"
        assert result.method is AuthMethod.LAB_ROLE

    def test_inactive_membership(self, now):
        membership = make_membership({"can_view_all_projects"}, is_active=False)
        result = evaluate_lab_role(make_context(), membership, now)
        assert result.reason == "User not a member of this lab"

    def test_not_yet_valid(self, now, tomorrow):
        membership = make_membership({"can_view_all_projects"}, access_start_date=tomorrow)
        result = evaluate_lab_role(make_context(), membership, now)
        assert not result.allowed
        assert result.reason == "Access not yet valid"

    def test_expired(self, now, yesterday):
        membership = make_membership({"can_view_all_projects"}, access_end_date=yesterday)
        result = evaluate_lab_role(make_context(), membership, now)
        assert not result.allowed
        assert result.reason == "Access has expired"

    def test_expired_admin_is_denied(self, now, yesterday):
        membership = make_membership(is_admin=True, access_end_date=yesterday)
        assert not evaluate_lab_role(make_context(), membership, now).allowed

    @pytest.mark.parametrize("flag", ["is_admin", "is_super_admin"])
    def test_admin_override_covers_unmapped_pairs(self, now, flag):
        membership = make_membership(**{flag: True})
        result = evaluate_lab_role(make_context("IDEA", "EXPORT"), membership, now)
        assert result.allowed
        assert result.reason == "Administrator privileges"

    def test_capability_grants(self, now):
        membership = make_membership({"can_create_projects"})
        result = evaluate_lab_role(make_context("STUDY", "CREATE"), membership, now)
        assert result.allowed
        assert result.reason == "Lab role permits study create"

    def test_missing_capability_is_named(self, now):
        result = evaluate_lab_role(make_context("STUDY", "CREATE"), make_membership(), now)
        assert not result.allowed
        assert result.reason == "Insufficient study create permissions (requires can_create_projects)"

    def test_unmapped_pair_never_grants(self, now):
        membership = make_membership(set(CAPABILITIES))
        result = evaluate_lab_role(make_context("IDEA", "VIEW"), membership, now)
        assert not result.allowed
        assert result.reason == "Insufficient idea view permissions"


class TestResourcePermissionLayer:
    def context(self, action="EDIT"):
        return make_context("TASK", action, entity_id="T1", resource_specific=True)

    def test_no_grants(self, now):
        result = evaluate_resource_permissions(self.context(), [], now)
        assert result.reason == "No resource-specific permissions found"
        assert result.method is AuthMethod.RESOURCE_PERMISSION

    def test_valid_grant(self, now, yesterday):
        grant = make_resource_grant(yesterday, can_edit=True)
        result = evaluate_resource_permissions(self.context(), [grant], now)
        assert result.allowed
        assert result.reason == "Resource-specific edit permission granted"

    def test_revoked_grant_never_authorizes(self, now, yesterday, tomorrow):
        grant = make_resource_grant(yesterday, valid_until=tomorrow, revoked_at=yesterday, can_edit=True)
        result = evaluate_resource_permissions(self.context(), [grant], now)
        assert not result.allowed
        assert result.reason == "Resource permission has been revoked"

    def test_expired_grant(self, now):
        grant = make_resource_grant(now - timedelta(days=10), valid_until=now - timedelta(days=1), can_edit=True)
        result = evaluate_resource_permissions(self.context(), [grant], now)
        assert result.reason == "Resource permission has expired"

    def test_future_grant(self, now, tomorrow):
        grant = make_resource_grant(tomorrow, can_edit=True)
        result = evaluate_resource_permissions(self.context(), [grant], now)
        assert result.reason == "Resource permission not yet valid"

    def test_any_valid_grant_suffices(self, now, yesterday):
        grants = [
            make_resource_grant(yesterday, id="g1", revoked_at=yesterday, can_edit=True),
            make_resource_grant(yesterday, id="g2", can_view=True),
            make_resource_grant(yesterday, id="g3", can_edit=True),
        ]
        assert evaluate_resource_permissions(self.context(), grants, now).allowed

    def test_action_without_flag(self, now, yesterday):
        grant = make_resource_grant(yesterday, can_view=True)
        result = evaluate_resource_permissions(self.context("EDIT"), [grant], now)
        assert result.reason == "No valid resource permission for this action"

    def test_export_is_never_matched(self, now, yesterday):
        grant = make_resource_grant(
            yesterday, can_view=True, can_edit=True, can_delete=True, can_share=True, can_assign=True
        )
        assert not evaluate_resource_permissions(self.context("EXPORT"), [grant], now).allowed


class TestCrossLabLayer:
    def test_no_grants(self, now):
        result = evaluate_cross_lab_access(make_context(), [], now)
        assert result.reason == "No cross-lab access found"
        assert result.method is AuthMethod.CROSS_LAB_ACCESS

    @pytest.mark.parametrize("status", [GrantStatus.PENDING, GrantStatus.REJECTED, GrantStatus.REVOKED])
    def test_only_approved_grants_count(self, now, yesterday, status):
        grant = make_cross_lab_grant(yesterday, status=status, can_view_projects=True)
        result = evaluate_cross_lab_access(make_context(), [grant], now)
        assert not result.allowed
        assert result.reason == "Cross-lab access does not permit this action"

    def test_edit_grant_has_fewer_restrictions(self, now, yesterday):
        grant = make_cross_lab_grant(yesterday, can_edit_shared_projects=True, can_join_meetings=True)
        result = evaluate_cross_lab_access(make_context(action="EDIT"), [grant], now)
        assert result.allowed
        assert result.reason == "Cross-lab edit access granted"
        assert result.restrictions == ("Cannot view reports",)

    @pytest.mark.parametrize("action", ["DELETE", "ASSIGN", "SHARE", "EXPORT", "CREATE"])
    def test_only_view_and_edit_are_mapped(self, now, yesterday, action):
        grant = make_cross_lab_grant(
            yesterday,
            can_view_projects=True,
            can_edit_shared_projects=True,
            can_join_meetings=True,
            can_view_reports=True,
        )
        assert not evaluate_cross_lab_access(make_context(action=action), [grant], now).allowed

    def test_expired_grant(self, now):
        grant = make_cross_lab_grant(now - timedelta(days=30), valid_until=now - timedelta(days=1))
        result = evaluate_cross_lab_access(make_context(), [grant], now)
        assert not result.allowed
        assert result.reason == "Cross-lab access has expired"

    def test_restrictions_order(self, now, yesterday):
        grant = make_cross_lab_grant(yesterday)
        assert cross_lab_restrictions(grant) == (
            "Read-only access",
            "Cannot join meetings",
            "Cannot view reports",
        )

    def test_full_grant_has_no_restrictions(self, now, yesterday):
        grant = make_cross_lab_grant(
            yesterday, can_edit_shared_projects=True, can_join_meetings=True, can_view_reports=True
        )
        assert cross_lab_restrictions(grant) == ()
