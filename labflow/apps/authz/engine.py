# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Permission engine.

Answers "may this user perform this action on this entity in this lab?"
by evaluating four layers in fixed order and stopping at the first one
that authorizes:

1. Ownership          (only with an entity id)
2. Lab role           (membership window, admin override, capability table)
3. Resource permission (only with resource_specific and an entity id)
4. Cross-lab access

Usage:
    engine = PermissionEngine()
    result = engine.check_permission(
        PermissionContext(user_id, lab_id, EntityType.TASK, Action.EDIT, entity_id=task_id),
        request=request,
    )
    if not result.allowed:
        ...

decide() is the decision function without side effects; check_permission()
adds the audit write and the fail-closed guarantee.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Callable

from asgiref.sync import sync_to_async
from django.conf import settings
from django.db import connections
from django.utils import timezone

from apps.audit.entries import AuditAction, AuditLogEntry

from .capabilities import capability_for
from .exceptions import StoreFailure
from .layers import (
    evaluate_cross_lab_access,
    evaluate_lab_role,
    evaluate_ownership,
    evaluate_resource_permissions,
    layer_failure,
)
from .types import AuthMethod, PermissionContext, PermissionResult

logger = logging.getLogger(__name__)

DENIED_REASON = "Insufficient permissions for this action"
SYSTEM_ERROR_REASON = "Permission check failed due to system error"
TIMEOUT_REASON = "Permission check timed out"
CANCELLED_REASON = "Permission check was cancelled"


@dataclass(frozen=True)
class Decision:
    """Result of decide(): the answer, every layer attempt and what to audit."""

    result: PermissionResult
    attempts: tuple[PermissionResult, ...]
    audit: AuditLogEntry


class PermissionEngine:
    """
    Stateless permission checker.

    Safe to share between threads: it holds no per-call state and reads
    grants fresh from the store on every call.
    """

    def __init__(self, store=None, sink=None, clock: Callable = timezone.now):
        if store is None:
            from .stores import DjangoGrantStore

            store = DjangoGrantStore()
        if sink is None:
            from apps.audit.sink import DatabaseAuditSink

            sink = DatabaseAuditSink()
        self.store = store
        self.sink = sink
        self.clock = clock

    # =========================================================================
    # DECISION
    # =========================================================================

    def _layers(self, context: PermissionContext, now):
        """Applicable layers in evaluation order, as (method, evaluator)."""
        store = self.store
        layers = []

        if context.entity_id is not None:
            layers.append((
                AuthMethod.OWNERSHIP,
                lambda: evaluate_ownership(
                    context, store.get_entity_owner(context.entity_type, context.entity_id)
                ),
            ))

        layers.append((
            AuthMethod.LAB_ROLE,
            lambda: evaluate_lab_role(
                context, store.get_lab_membership(context.user_id, context.lab_id), now
            ),
        ))

        if context.resource_specific and context.entity_id is not None:
            layers.append((
                AuthMethod.RESOURCE_PERMISSION,
                lambda: evaluate_resource_permissions(
                    context,
                    store.get_resource_permissions(context.user_id, context.entity_type, context.entity_id),
                    now,
                ),
            ))

        layers.append((
            AuthMethod.CROSS_LAB_ACCESS,
            lambda: evaluate_cross_lab_access(
                context, store.get_cross_lab_access(context.user_id, context.lab_id), now
            ),
        ))
        return layers

    def decide(self, context: PermissionContext) -> Decision:
        """
        Evaluate the layers left to right, stopping at the first success.

        A store failure inside a layer only fails that layer. Anything
        else propagates to the caller.
        """
        now = self.clock()
        attempts = []

        for method, evaluate in self._layers(context, now):
            try:
                result = evaluate()
            except StoreFailure as e:
                logger.warning(f"{method.value} layer failed for user {context.user_id}: {e}")
                result = layer_failure(method)
            attempts.append(result)

            if result.allowed:
                return Decision(result, tuple(attempts), self._granted_entry(context, result))

        result = PermissionResult(False, DENIED_REASON, attempts[-1].method)
        return Decision(result, tuple(attempts), self._denied_entry(context, attempts))

    def _base_entry(self, context: PermissionContext, **fields) -> AuditLogEntry:
        return AuditLogEntry(
            entity_type=context.entity_type.value,
            entity_id=context.entity_id,
            user_id=context.user_id,
            lab_id=context.lab_id,
            required_permission=capability_for(context.entity_type, context.action) or "",
            **fields,
        )

    def _granted_entry(self, context, result: PermissionResult) -> AuditLogEntry:
        return self._base_entry(
            context,
            action=AuditAction.PERMISSION_CHECK,
            authorization_method=result.method.value,
            was_authorized=True,
            details={
                "permissionCheck": context.action.value,
                "method": result.method.value,
                "reason": result.reason,
            },
        )

    def _denied_entry(self, context, attempts) -> AuditLogEntry:
        return self._base_entry(
            context,
            action=AuditAction.ACCESS_DENIED,
            was_authorized=False,
            error_message="Permission denied - insufficient access rights",
            details={
                "permissionCheck": context.action.value,
                "allLayersFailed": True,
                "attempts": [
                    {"method": attempt.method.value, "reason": attempt.reason}
                    for attempt in attempts
                ],
            },
        )

    # =========================================================================
    # PUBLIC ENTRY POINTS
    # =========================================================================

    def _evaluate(self, context: PermissionContext) -> tuple[PermissionResult, AuditLogEntry]:
        """decide() with the fail-closed guarantee; returns the result and its audit entry."""
        try:
            decision = self.decide(context)
        except Exception as e:
            logger.exception(f"Permission check failed for user {context.user_id} in lab {context.lab_id}: {e}")
            entry = self._base_entry(
                context,
                action=AuditAction.ACCESS_DENIED,
                was_authorized=False,
                error_message=str(e),
                details={"permissionCheck": context.action.value, "error": type(e).__name__},
            )
            return PermissionResult(False, SYSTEM_ERROR_REASON, AuthMethod.OWNERSHIP), entry

        if not decision.result.allowed:
            logger.warning(
                f"Access denied: user {context.user_id} {context.action.value} "
                f"{context.entity_type.value} {context.entity_id or '-'} in lab {context.lab_id}"
            )
        return decision.result, decision.audit

    def _abandoned(self, context: PermissionContext, reason: str) -> tuple[PermissionResult, AuditLogEntry]:
        """Denial for an async check the caller stopped waiting for."""
        entry = self._base_entry(
            context,
            action=AuditAction.ACCESS_DENIED,
            was_authorized=False,
            error_message=reason,
            details={"permissionCheck": context.action.value, "reason": reason},
        )
        return PermissionResult(False, reason, AuthMethod.OWNERSHIP), entry

    def check_permission(self, context: PermissionContext, request=None) -> PermissionResult:
        """
        Decide, record exactly one audit entry and return the result.

        Never raises: an unexpected error denies the request.
        """
        result, entry = self._evaluate(context)
        self._record(entry, request)
        return result

    async def acheck_permission(
        self,
        context: PermissionContext,
        request=None,
        timeout: float | None = None,
    ) -> PermissionResult:
        """
        Async variant of check_permission.

        The decision runs in a worker thread. A timeout or cancellation of
        the awaiting task returns a denied result; the worker's late result
        is discarded and never audited. Exactly one audit entry is written,
        describing the result the caller receives.
        """
        if timeout is None:
            timeout = settings.AUTHZ_CHECK_TIMEOUT

        evaluate = sync_to_async(_closing_connections(self._evaluate), thread_sensitive=False)
        try:
            result, entry = await asyncio.wait_for(evaluate(context), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Permission check for user {context.user_id} timed out after {timeout}s")
            result, entry = self._abandoned(context, TIMEOUT_REASON)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            logger.warning(f"Permission check for user {context.user_id} was cancelled")
            result, entry = self._abandoned(context, CANCELLED_REASON)

        record = sync_to_async(_closing_connections(self._record), thread_sensitive=False)
        await record(entry, request)
        return result

    def _record(self, entry: AuditLogEntry, request) -> None:
        try:
            self.sink.record(entry, request)
        except Exception as e:
            logger.error(f"Audit sink failed: {e}")


def _closing_connections(func):
    """Run func, then close the calling thread's database connections."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        finally:
            connections.close_all()

    return wrapper


def check_permission(context: PermissionContext, request=None) -> PermissionResult:
    """Shortcut using the database store and sink."""
    return PermissionEngine().check_permission(context, request)
