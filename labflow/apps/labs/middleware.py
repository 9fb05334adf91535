# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Middleware for lab context management.

Determines the lab a request acts in and sets request.lab_id.
"""

import re

from django.conf import settings


class LabContextMiddleware:
    """
    Sets request.lab_id from the current-lab header or the URL.

    The header (X-Current-Lab by default, see AUTHZ_LAB_HEADER) wins over
    a /labs/<lab_id>/ path prefix. request.lab_id is None when neither is
    present.
    """

    # Pattern to extract the lab id from lab-scoped URLs
    LAB_URL_PATTERN = re.compile(r"^(?:/api)?/labs/([0-9a-fA-F-]{32,36})/")

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.lab_id = self._get_lab_id(request)
        return self.get_response(request)

    def _get_lab_id(self, request) -> str | None:
        header = request.META.get(settings.AUTHZ_LAB_HEADER, "").strip()
        if header:
            return header

        match = self.LAB_URL_PATTERN.match(request.path)
        if match:
            return match.group(1)
        return None
