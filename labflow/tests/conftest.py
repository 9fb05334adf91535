"""
Shared fixtures for the LabFlow test suite.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from apps.authz.exceptions import StoreFailure
from apps.authz.types import EntityType, MembershipGrant
from apps.common.permissions import CAPABILITIES

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class InMemoryGrantStore:
    """GrantStore keeping everything in dicts; operations listed in `failing` raise."""

    def __init__(self):
        self.owners = {}
        self.memberships = {}
        self.resource_grants = []
        self.cross_lab_grants = []
        self.templates = {}
        self.bundles = {}
        self.failing = set()
        self.calls = []

    def _call(self, operation):
        self.calls.append(operation)
        if operation in self.failing:
            raise StoreFailure(operation)

    # Setup helpers

    def add_owner(self, entity_type, entity_id, owner_id):
        self.owners[(EntityType(entity_type), str(entity_id))] = owner_id

    def add_membership(self, user_id, lab_id, capabilities=(), **fields):
        grant = MembershipGrant(
            user_id=str(user_id),
            lab_id=str(lab_id),
            role=fields.pop("role", "RESEARCH_ASSISTANT"),
            is_active=fields.pop("is_active", True),
            capabilities=frozenset(capabilities),
            **fields,
        )
        self.memberships[(grant.user_id, grant.lab_id)] = grant
        return grant

    # GrantStore

    def get_entity_owner(self, entity_type, entity_id):
        self._call("get_entity_owner")
        return self.owners.get((entity_type, entity_id))

    def get_lab_membership(self, user_id, lab_id):
        self._call("get_lab_membership")
        return self.memberships.get((user_id, lab_id))

    def get_resource_permissions(self, user_id, entity_type, entity_id):
        self._call("get_resource_permissions")
        return [
            grant
            for grant in self.resource_grants
            if grant.user_id == user_id and grant.entity_type == entity_type and grant.entity_id == entity_id
        ]

    def get_cross_lab_access(self, user_id, lab_id):
        self._call("get_cross_lab_access")
        return [grant for grant in self.cross_lab_grants if grant.user_id == user_id and grant.target_lab_id == lab_id]

    def get_permission_template(self, template_id):
        self._call("get_permission_template")
        return self.templates.get(template_id)

    def get_default_template(self, lab_id, key):
        self._call("get_default_template")
        for template in self.templates.values():
            if template.lab_id == lab_id and template.key == key and template.is_default and template.is_active:
                return template
        return None

    def set_lab_membership_capabilities(self, user_id, lab_id, capabilities):
        self._call("set_lab_membership_capabilities")
        membership = self.memberships.get((user_id, lab_id))
        if membership is None:
            return False
        self.bundles[(user_id, lab_id)] = dict(capabilities)
        self.memberships[(user_id, lab_id)] = replace(
            membership,
            is_admin=bool(capabilities.get("is_admin", False)),
            is_super_admin=bool(capabilities.get("is_super_admin", False)),
            capabilities=frozenset(name for name in CAPABILITIES if capabilities.get(name)),
        )
        return True

    def list_active_memberships(self, lab_id):
        self._call("list_active_memberships")
        return [m for m in self.memberships.values() if m.lab_id == lab_id and m.is_active]


class ListAuditSink:
    """Collects audit entries in a list."""

    def __init__(self):
        self.entries = []

    def record(self, entry, request=None):
        self.entries.append(entry)


class FailingAuditSink:
    def record(self, entry, request=None):
        raise RuntimeError("audit backend unavailable")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def yesterday():
    return NOW - timedelta(days=1)


@pytest.fixture
def tomorrow():
    return NOW + timedelta(days=1)


@pytest.fixture
def store():
    return InMemoryGrantStore()


@pytest.fixture
def sink():
    return ListAuditSink()


@pytest.fixture
def failing_sink():
    return FailingAuditSink()


@pytest.fixture
def engine(store, sink):
    from apps.authz.engine import PermissionEngine

    return PermissionEngine(store=store, sink=sink, clock=lambda: NOW)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(
        email="ada@example.org",
        password="secret-password",
        first_name="Ada",
        last_name="Lovelace",
    )


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(email="grace@example.org", password="secret-password")


@pytest.fixture
def lab(db):
    from apps.labs.models import Lab

    return Lab.objects.create(name="Cardiology Lab")


@pytest.fixture
def other_lab(db):
    from apps.labs.models import Lab

    return Lab.objects.create(name="Neurology Lab")
