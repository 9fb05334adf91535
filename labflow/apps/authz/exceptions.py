# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Exceptions raised inside the authorization core.

None of these cross the public entry points of the engine or the
template service; they are converted into denied results there.
"""


class AuthorizationError(Exception):
    """Base class for authorization core errors."""


class StoreFailure(AuthorizationError):
    """A grant store query failed (database error, timeout, ...)."""

    def __init__(self, operation: str, original: Exception | None = None):
        self.operation = operation
        self.original = original
        message = f"{operation} failed"
        if original is not None:
            message = f"{message}: {original}"
        super().__init__(message)
