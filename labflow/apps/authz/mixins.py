# SPDX-License-Identifier: AGPL-3.0-or-later
"""
View mixins for engine permission checks.

Usage:
    class StudyDeleteView(LabPermissionRequiredMixin, View):
        permission_entity_type = EntityType.STUDY
        permission_action = Action.DELETE
"""

from .decorators import authorize_request


class LabPermissionRequiredMixin:
    """
    Checks an engine permission before dispatching.

    Attributes:
        permission_entity_type: EntityType to check
        permission_action: Action to check
        permission_resource_specific: enable the resource-permission layer
        permission_entity_kwarg: URL kwarg holding the entity id (None = no entity)
        permission_lab_kwarg: URL kwarg holding the lab id (None = current lab)
    """

    permission_entity_type = None
    permission_action = None
    permission_resource_specific = False
    permission_entity_kwarg = "pk"
    permission_lab_kwarg = None

    permission_result = None

    def get_permission_entity_id(self):
        if not self.permission_entity_kwarg:
            return None
        return self.kwargs.get(self.permission_entity_kwarg)

    def dispatch(self, request, *args, **kwargs):
        if self.permission_entity_type is None or self.permission_action is None:
            raise NotImplementedError(f"{type(self).__name__} must set permission_entity_type and permission_action")

        lab_id = kwargs.get(self.permission_lab_kwarg) if self.permission_lab_kwarg else None
        response, result = authorize_request(
            request,
            self.permission_entity_type,
            self.permission_action,
            entity_id=self.get_permission_entity_id(),
            resource_specific=self.permission_resource_specific,
            lab_id=lab_id,
        )
        if response is not None:
            return response

        self.permission_result = result
        request.permission_result = result
        return super().dispatch(request, *args, **kwargs)
