"""
Tests for the security audit trail.
"""

import logging
from unittest.mock import patch

import pytest
from django.http import HttpResponse

from apps.audit.entries import AuditAction, AuditLogEntry
from apps.audit.middleware import AuditAuthenticationMiddleware
from apps.audit.models import AuditLogImmutable, SecurityAuditLog
from apps.audit.sink import (
    DatabaseAuditSink,
    get_client_ip,
    log_access_denied,
    log_delete_attempt,
    log_successful_delete,
)
from apps.authz.types import EntityType


def make_entry(**fields):
    values = {
        "action": AuditAction.PERMISSION_CHECK,
        "entity_type": "STUDY",
        "was_authorized": True,
        "entity_id": "S1",
        "user_id": "u1",
        "lab_id": "lab1",
        "authorization_method": "lab_role",
    }
    values.update(fields)
    return AuditLogEntry(**values)


class TestClientIp:
    def test_forwarded_for_wins(self, rf):
        request = rf.get("/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1", REMOTE_ADDR="10.0.0.1")
        assert get_client_ip(request) == "203.0.113.7"

    def test_remote_addr(self, rf):
        request = rf.get("/", REMOTE_ADDR="198.51.100.2")
        assert get_client_ip(request) == "198.51.100.2"


@pytest.mark.django_db
class TestDatabaseAuditSink:
    def test_writes_entry(self):
        DatabaseAuditSink(enabled=True).record(make_entry(details={"method": "lab_role"}))

        log = SecurityAuditLog.objects.get()
        assert log.action == "PERMISSION_CHECK"
        assert log.entity_type == "STUDY"
        assert log.user_id == "u1"
        assert log.details == {"method": "lab_role"}

    def test_fills_request_metadata(self, rf, user):
        request = rf.post(
            "/api/permissions/check/",
            HTTP_X_FORWARDED_FOR="203.0.113.7",
            HTTP_USER_AGENT="pytest-agent",
            HTTP_X_CURRENT_LAB="lab-from-header",
        )
        request.user = user

        DatabaseAuditSink(enabled=True).record(make_entry(user_id=None, lab_id=None), request)

        log = SecurityAuditLog.objects.get()
        assert log.ip_address == "203.0.113.7"
        assert log.user_agent == "pytest-agent"
        assert log.endpoint == "/api/permissions/check/"
        assert log.http_method == "POST"
        assert log.user_id == str(user.pk)
        assert log.user_email == "ada@example.org"
        assert log.lab_id == "lab-from-header"

    def test_entry_fields_win_over_request(self, rf, user):
        request = rf.get("/")
        request.user = user

        DatabaseAuditSink(enabled=True).record(make_entry(user_id="admin-7"), request)
        assert SecurityAuditLog.objects.get().user_id == "admin-7"

    def test_failed_write_is_logged_and_swallowed(self, caplog):
        with patch.object(SecurityAuditLog.objects, "create", side_effect=RuntimeError("disk full")):
            with caplog.at_level(logging.ERROR, logger="apps.audit"):
                DatabaseAuditSink(enabled=True).record(make_entry())

        assert "Failed to create audit log" in caplog.text
        assert SecurityAuditLog.objects.count() == 0

    def test_disabled_sink_writes_nothing(self, settings):
        settings.AUTHZ_AUDIT_ENABLED = False
        DatabaseAuditSink().record(make_entry())
        assert SecurityAuditLog.objects.count() == 0


@pytest.mark.django_db
class TestAppendOnly:
    def test_entries_cannot_be_modified(self):
        DatabaseAuditSink(enabled=True).record(make_entry())
        log = SecurityAuditLog.objects.get()

        log.was_authorized = False
        with pytest.raises(AuditLogImmutable):
            log.save()

    def test_entries_cannot_be_deleted(self):
        DatabaseAuditSink(enabled=True).record(make_entry())
        with pytest.raises(AuditLogImmutable):
            SecurityAuditLog.objects.get().delete()


@pytest.mark.django_db
class TestHelpers:
    def test_log_delete_attempt_denied(self, rf):
        log_delete_attempt(rf.delete("/api/tasks/T1/"), EntityType.TASK, "T1", authorized=False)

        log = SecurityAuditLog.objects.get()
        assert log.action == "DELETE"
        assert log.was_authorized is False
        assert log.details == {"reason": "Ownership or admin validation failed"}

    def test_log_access_denied(self, rf):
        log_access_denied(rf.get("/api/studies/S1/"), "STUDY", "Not a lab member", entity_id="S1")

        log = SecurityAuditLog.objects.get()
        assert log.action == "ACCESS_DENIED"
        assert log.error_message == "Not a lab member"
        assert log.details == {"deniedResource": "/api/studies/S1/"}

    def test_log_successful_delete(self, rf, sink):
        log_successful_delete(rf.delete("/"), EntityType.IDEA, "I1", "ownership", sink=sink)

        assert sink.entries[0].details == {"deletionMethod": "ownership"}
        assert sink.entries[0].entity_type == "IDEA"
        assert SecurityAuditLog.objects.count() == 0


class TestAuthenticationMiddleware:
    def test_records_unauthorized_responses(self, rf, sink):
        middleware = AuditAuthenticationMiddleware(lambda request: HttpResponse(status=401), sink=sink)
        middleware(rf.get("/api/permissions/check/"))

        assert len(sink.entries) == 1
        entry = sink.entries[0]
        assert entry.action is AuditAction.ACCESS_DENIED
        assert entry.entity_type == "USER"
        assert entry.error_message == "Authentication failed"
        assert entry.details == {"endpoint": "/api/permissions/check/", "method": "GET"}

    @pytest.mark.parametrize("status", [200, 403, 500])
    def test_ignores_other_responses(self, rf, sink, status):
        middleware = AuditAuthenticationMiddleware(lambda request: HttpResponse(status=status), sink=sink)
        middleware(rf.get("/"))
        assert sink.entries == []
