# SPDX-License-Identifier: AGPL-3.0-or-later
"""
JSON endpoints of the authorization app.

- POST /api/permissions/check/
    Body: {"entity_type", "action", "entity_id"?, "resource_specific"?}
    Checks the permission for the current user in the current lab.
- POST /api/labs/<lab_id>/members/<user_id>/apply-template/
    Body: {"template_id"}
    Applies a permission template; requires USER/ASSIGN in that lab.
"""

import json
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_POST

from .decorators import authorize_request, permission_required
from .templates import PermissionTemplateService
from .types import Action, EntityType

logger = logging.getLogger(__name__)


def _json_body(request) -> dict | None:
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


@require_POST
def check_permission_view(request):
    """Report whether the current user may perform an action."""
    data = _json_body(request)
    if data is None:
        return JsonResponse({"message": "Invalid JSON"}, status=400)

    try:
        entity_type = EntityType(str(data.get("entity_type", "")).upper())
        action = Action(str(data.get("action", "")).upper())
    except ValueError:
        return JsonResponse({"message": "Unknown entity type or action"}, status=400)

    entity_id = data.get("entity_id")
    response, result = authorize_request(
        request,
        entity_type,
        action,
        entity_id=str(entity_id) if entity_id else None,
        resource_specific=bool(data.get("resource_specific", False)),
    )
    if result is None:
        return response
    return JsonResponse(result.to_dict())


@require_POST
@permission_required(EntityType.USER, Action.ASSIGN, entity_kwarg=None, lab_kwarg="lab_id")
def apply_template_view(request, lab_id, user_id):
    """Apply a permission template to a lab member."""
    data = _json_body(request)
    if data is None or not data.get("template_id"):
        return JsonResponse({"message": "template_id is required"}, status=400)

    applied = PermissionTemplateService().apply_template(
        user_id,
        lab_id,
        data["template_id"],
        applied_by=request.user.pk,
        request=request,
    )
    if not applied:
        return JsonResponse({"applied": False, "message": "Template could not be applied"}, status=400)
    return JsonResponse({"applied": True})
