# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Middleware recording failed authentication in the audit trail.
"""

from .entries import AuditAction, AuditLogEntry
from .sink import DatabaseAuditSink


class AuditAuthenticationMiddleware:
    """
    Records an ACCESS_DENIED entry for every 401 response.

    Sits after the authentication middleware so the acting user (if any)
    is known when the entry is written.
    """

    def __init__(self, get_response, sink=None):
        self.get_response = get_response
        self.sink = sink if sink is not None else DatabaseAuditSink()

    def __call__(self, request):
        response = self.get_response(request)

        if response.status_code == 401:
            self.sink.record(
                AuditLogEntry(
                    action=AuditAction.ACCESS_DENIED,
                    entity_type="USER",
                    was_authorized=False,
                    error_message="Authentication failed",
                    details={"endpoint": request.get_full_path(), "method": request.method},
                ),
                request,
            )

        return response
