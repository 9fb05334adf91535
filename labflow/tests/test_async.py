"""
Tests for the async permission check.
"""

import asyncio
import threading
from unittest.mock import patch

import pytest

from apps.audit.entries import AuditAction
from apps.authz.engine import CANCELLED_REASON, TIMEOUT_REASON
from apps.authz.types import AuthMethod, PermissionContext


@pytest.fixture
def release():
    event = threading.Event()
    yield event
    # Let a worker thread stuck in the store finish
    event.set()


@pytest.fixture
def blocking_store(store, release):
    original = store.get_lab_membership

    def get_lab_membership(user_id, lab_id):
        release.wait(timeout=5)
        return original(user_id, lab_id)

    store.get_lab_membership = get_lab_membership
    return store


def study_view():
    return PermissionContext("u1", "lab1", "STUDY", "VIEW")


class TestAsyncCheck:
    @pytest.mark.asyncio
    async def test_returns_the_engine_result(self, engine, store, sink):
        store.add_membership("u1", "lab1", {"can_view_all_projects"})

        result = await engine.acheck_permission(study_view())

        assert result.allowed
        assert result.method is AuthMethod.LAB_ROLE
        assert len(sink.entries) == 1

    @pytest.mark.asyncio
    async def test_timeout_denies(self, engine, blocking_store):
        blocking_store.add_membership("u1", "lab1", {"can_view_all_projects"})

        result = await engine.acheck_permission(study_view(), timeout=0.05)

        assert not result.allowed
        assert result.reason == TIMEOUT_REASON
        assert result.method is AuthMethod.OWNERSHIP

    @pytest.mark.asyncio
    async def test_cancellation_denies(self, engine, blocking_store):
        blocking_store.add_membership("u1", "lab1", {"can_view_all_projects"})

        task = asyncio.create_task(engine.acheck_permission(study_view(), timeout=5))
        await asyncio.sleep(0.05)
        task.cancel()
        result = await task

        assert not result.allowed
        assert result.reason == CANCELLED_REASON
        assert result.method is AuthMethod.OWNERSHIP

    @pytest.mark.asyncio
    async def test_default_timeout_from_settings(self, engine, blocking_store, settings):
        settings.AUTHZ_CHECK_TIMEOUT = 0.05
        result = await engine.acheck_permission(study_view())
        assert result.reason == TIMEOUT_REASON


class TestAsyncAudit:
    @pytest.mark.asyncio
    async def test_timeout_is_audited_once_as_denied(self, engine, blocking_store, sink, release):
        blocking_store.add_membership("u1", "lab1", {"can_view_all_projects"})
        finished = threading.Event()
        evaluate = engine._evaluate

        def tracked_evaluate(context):
            try:
                return evaluate(context)
            finally:
                finished.set()

        engine._evaluate = tracked_evaluate

        result = await engine.acheck_permission(study_view(), timeout=0.05)

        assert result.reason == TIMEOUT_REASON
        assert [(entry.action, entry.was_authorized) for entry in sink.entries] == [
            (AuditAction.ACCESS_DENIED, False)
        ]
        assert sink.entries[0].error_message == TIMEOUT_REASON

        # The worker completes its (allowed) decision after the caller gave up
        release.set()
        assert await asyncio.to_thread(finished.wait, 5)
        assert len(sink.entries) == 1
        assert sink.entries[0].action is AuditAction.ACCESS_DENIED

    @pytest.mark.asyncio
    async def test_cancellation_is_audited_as_denied(self, engine, blocking_store, sink):
        blocking_store.add_membership("u1", "lab1", {"can_view_all_projects"})

        task = asyncio.create_task(engine.acheck_permission(study_view(), timeout=5))
        await asyncio.sleep(0.05)
        task.cancel()
        await task

        assert len(sink.entries) == 1
        assert sink.entries[0].action is AuditAction.ACCESS_DENIED
        assert sink.entries[0].error_message == CANCELLED_REASON

    @pytest.mark.asyncio
    async def test_denial_is_audited_with_attempts(self, engine, sink):
        result = await engine.acheck_permission(PermissionContext("u1", "lab1", "STUDY", "DELETE"))

        assert not result.allowed
        assert len(sink.entries) == 1
        assert sink.entries[0].details["allLayersFailed"] is True


class TestWorkerConnections:
    @pytest.mark.asyncio
    async def test_worker_threads_close_their_connections(self, engine, store):
        store.add_membership("u1", "lab1", {"can_view_all_projects"})

        with patch("apps.authz.engine.connections") as connections:
            result = await engine.acheck_permission(study_view())

        assert result.allowed
        # once after deciding, once after recording
        assert connections.close_all.call_count == 2

    @pytest.mark.asyncio
    async def test_timed_out_worker_closes_its_connection(self, engine, blocking_store, release):
        with patch("apps.authz.engine.connections") as connections:
            await engine.acheck_permission(study_view(), timeout=0.05)
            calls_at_return = connections.close_all.call_count

            release.set()
            for _ in range(100):
                if connections.close_all.call_count > calls_at_return:
                    break
                await asyncio.sleep(0.01)

        assert connections.close_all.call_count == calls_at_return + 1
