"""
Tests for the Django grant store and the engine running on the database.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone

from apps.audit.models import SecurityAuditLog
from apps.authz.engine import PermissionEngine
from apps.authz.exceptions import StoreFailure
from apps.authz.stores import DjangoGrantStore
from apps.authz.types import Action, AuthMethod, EntityType, GrantStatus, PermissionContext
from apps.labs.models import CrossLabAccess, LabMembership, LabRole, ResourcePermission
from apps.research.models import Idea, Study, Task


@pytest.fixture
def grant_store():
    return DjangoGrantStore()


@pytest.mark.django_db
class TestDjangoGrantStore:
    def test_entity_owner(self, grant_store, lab, user):
        study = Study.objects.create(lab=lab, name="Heart failure cohort", created_by=user)
        assert grant_store.get_entity_owner(EntityType.STUDY, str(study.pk)) == str(user.pk)

    def test_idea_owner_is_the_proposer(self, grant_store, lab, user):
        idea = Idea.objects.create(lab=lab, title="Wearable ECG", proposed_by=user)
        assert grant_store.get_entity_owner(EntityType.IDEA, str(idea.pk)) == str(user.pk)

    def test_missing_and_malformed_entities(self, grant_store):
        assert grant_store.get_entity_owner(EntityType.TASK, str(uuid.uuid4())) is None
        assert grant_store.get_entity_owner(EntityType.TASK, "not-a-uuid") is None
        assert grant_store.get_entity_owner(EntityType.LAB, str(uuid.uuid4())) is None

    def test_entity_without_owner(self, grant_store, lab):
        task = Task.objects.create(lab=lab, title="Orphan task")
        assert grant_store.get_entity_owner(EntityType.TASK, str(task.pk)) == ""

    def test_membership_record(self, grant_store, lab, user):
        LabMembership.objects.create(
            user=user, lab=lab, lab_role=LabRole.FELLOW, can_view_all_tasks=True, can_export_data=True
        )
        grant = grant_store.get_lab_membership(str(user.pk), str(lab.pk))
        assert grant.role == LabRole.FELLOW
        assert grant.capabilities == frozenset({"can_view_all_tasks", "can_export_data"})
        assert grant_store.get_lab_membership(str(user.pk), "bogus") is None

    def test_database_error_becomes_store_failure(self, grant_store, lab, user):
        with patch.object(LabMembership.objects, "filter", side_effect=DatabaseError("db down")):
            with pytest.raises(StoreFailure):
                grant_store.get_lab_membership(str(user.pk), str(lab.pk))

    def test_set_capabilities_overwrites_bundle(self, grant_store, lab, user):
        LabMembership.objects.create(user=user, lab=lab, is_admin=True, can_delete_tasks=True)
        assert grant_store.set_lab_membership_capabilities(str(user.pk), str(lab.pk), {"can_view_all_tasks": True})

        membership = LabMembership.objects.get(user=user, lab=lab)
        assert membership.can_view_all_tasks is True
        assert membership.can_delete_tasks is False
        assert membership.is_admin is False

    def test_set_capabilities_without_membership(self, grant_store, lab, user):
        assert grant_store.set_lab_membership_capabilities(str(user.pk), str(lab.pk), {}) is False

    def test_active_memberships(self, grant_store, lab, user, other_user):
        LabMembership.objects.create(user=user, lab=lab)
        LabMembership.objects.create(user=other_user, lab=lab, is_active=False)
        grants = grant_store.list_active_memberships(str(lab.pk))
        assert [grant.user_id for grant in grants] == [str(user.pk)]

    def test_cross_lab_rows(self, grant_store, lab, other_lab, user):
        CrossLabAccess.objects.create(user=user, home_lab=other_lab, target_lab=lab)
        grants = grant_store.get_cross_lab_access(str(user.pk), str(lab.pk))
        assert len(grants) == 1
        assert grants[0].status is GrantStatus.PENDING


@pytest.mark.django_db
class TestEngineOnDatabase:
    def engine(self):
        return PermissionEngine()

    def test_owner_can_delete_own_task(self, lab, user):
        task = Task.objects.create(lab=lab, title="Consent forms", created_by=user)
        result = self.engine().check_permission(
            PermissionContext(user.pk, lab.pk, EntityType.TASK, Action.DELETE, entity_id=task.pk)
        )
        assert result.allowed
        assert result.method is AuthMethod.OWNERSHIP

    def test_upper_case_ids_match_owner_and_resource_grant(self, lab, user, other_user):
        own_task = Task.objects.create(lab=lab, title="Ethics submission", created_by=user)
        shared_task = Task.objects.create(lab=lab, title="Sample tracking", created_by=other_user)
        ResourcePermission.objects.create(
            user=user,
            lab=lab,
            entity_type=EntityType.TASK.value,
            entity_id=str(shared_task.pk),
            can_edit=True,
            valid_from=timezone.now() - timedelta(hours=1),
        )
        user_id, lab_id = str(user.pk).upper(), str(lab.pk).upper()

        owned = self.engine().check_permission(
            PermissionContext(user_id, lab_id, "TASK", "DELETE", entity_id=str(own_task.pk).upper())
        )
        granted = self.engine().check_permission(
            PermissionContext(
                user_id, lab_id, "TASK", "EDIT", entity_id=str(shared_task.pk).upper(), resource_specific=True
            )
        )

        assert owned.method is AuthMethod.OWNERSHIP and owned.allowed
        assert granted.method is AuthMethod.RESOURCE_PERMISSION and granted.allowed

    def test_check_is_audited(self, lab, user):
        LabMembership.objects.create(user=user, lab=lab, can_create_projects=True)
        self.engine().check_permission(PermissionContext(user.pk, lab.pk, "STUDY", "CREATE"))

        entry = SecurityAuditLog.objects.get()
        assert entry.action == "PERMISSION_CHECK"
        assert entry.was_authorized is True
        assert entry.authorization_method == "lab_role"
        assert entry.user_id == str(user.pk)
        assert entry.lab_id == str(lab.pk)

    def test_resource_permission_and_revocation(self, lab, user, other_user):
        task = Task.objects.create(lab=lab, title="Data cleaning", created_by=other_user)
        grant = ResourcePermission.objects.create(
            user=user,
            lab=lab,
            entity_type=EntityType.TASK.value,
            entity_id=str(task.pk),
            can_edit=True,
            valid_from=timezone.now() - timedelta(hours=1),
        )
        context = PermissionContext(user.pk, lab.pk, "TASK", "EDIT", entity_id=task.pk, resource_specific=True)

        result = self.engine().check_permission(context)
        assert result.allowed
        assert result.method is AuthMethod.RESOURCE_PERMISSION

        grant.revoke(by=other_user)
        assert not self.engine().check_permission(context).allowed

    def test_cross_lab_access_lifecycle(self, lab, other_lab, user):
        access = CrossLabAccess.objects.create(
            user=user,
            home_lab=other_lab,
            target_lab=lab,
            can_view_projects=True,
            valid_from=timezone.now() - timedelta(days=1),
        )
        context = PermissionContext(user.pk, lab.pk, "STUDY", "VIEW")
        assert not self.engine().check_permission(context).allowed

        access.approve()
        result = self.engine().check_permission(context)
        assert result.allowed
        assert "Read-only access" in result.restrictions

        access.revoke()
        assert not self.engine().check_permission(context).allowed

    def test_deactivated_membership(self, lab, user):
        membership = LabMembership.objects.create(user=user, lab=lab, can_view_all_projects=True)
        membership.delete()

        membership.refresh_from_db()
        assert membership.is_active is False
        assert membership.left_at is not None
        assert not self.engine().check_permission(PermissionContext(user.pk, lab.pk, "STUDY", "VIEW")).allowed
