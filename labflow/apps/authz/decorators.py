# SPDX-License-Identifier: AGPL-3.0-or-later
"""
View decorators enforcing engine permission checks.

Usage:
    @permission_required(EntityType.TASK, Action.EDIT, resource_specific=True)
    def edit_task(request, pk):
        ...

Responses on failure (JSON):
- 401 {"message": "Authentication required"}: no user or no current lab
- 403 {"message": "Permission denied", "reason": ..., "restrictions": [...]}
- 500 {"message": "Permission check failed"}

On success request.permission_result holds the PermissionResult.
"""

import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse

from .types import PermissionContext

logger = logging.getLogger(__name__)


def get_current_lab_id(request) -> str | None:
    """Lab the request acts in (set by LabContextMiddleware)."""
    lab_id = getattr(request, "lab_id", None)
    if lab_id:
        return str(lab_id)
    return request.META.get(settings.AUTHZ_LAB_HEADER) or None


def authorize_request(
    request,
    entity_type,
    action,
    entity_id=None,
    resource_specific: bool = False,
    lab_id=None,
    engine=None,
):
    """
    Run a permission check for the current request.

    Returns (response, result): response is a JSON error response when
    the request must not proceed, otherwise None.
    """
    user = getattr(request, "user", None)
    lab_id = lab_id or get_current_lab_id(request)
    if user is None or not user.is_authenticated or not lab_id:
        return JsonResponse({"message": "Authentication required"}, status=401), None

    try:
        if engine is None:
            from .engine import PermissionEngine

            engine = PermissionEngine()
        context = PermissionContext(
            user_id=user.pk,
            lab_id=lab_id,
            entity_type=entity_type,
            action=action,
            entity_id=entity_id,
            resource_specific=resource_specific,
        )
        result = engine.check_permission(context, request)
    except Exception as e:
        logger.exception(f"Permission check error: {e}")
        return JsonResponse({"message": "Permission check failed"}, status=500), None

    if not result.allowed:
        return (
            JsonResponse(
                {
                    "message": "Permission denied",
                    "reason": result.reason,
                    "restrictions": list(result.restrictions),
                },
                status=403,
            ),
            result,
        )

    return None, result


def permission_required(
    entity_type,
    action,
    resource_specific: bool = False,
    entity_kwarg: str | None = "pk",
    lab_kwarg: str | None = None,
):
    """
    Decorator for function-based views that require an engine permission.

    entity_kwarg names the URL kwarg holding the entity id (None for
    creation-type checks); lab_kwarg names a URL kwarg holding the lab
    id, which then takes precedence over the current-lab header.
    """

    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            entity_id = kwargs.get(entity_kwarg) if entity_kwarg else None
            lab_id = kwargs.get(lab_kwarg) if lab_kwarg else None

            response, result = authorize_request(
                request,
                entity_type,
                action,
                entity_id=entity_id,
                resource_specific=resource_specific,
                lab_id=lab_id,
            )
            if response is not None:
                return response

            request.permission_result = result
            return view_func(request, *args, **kwargs)

        return _wrapped_view

    return decorator
