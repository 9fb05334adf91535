# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Temporal validity of memberships and grants.

Both bounds are inclusive; an unset bound is open on that side.
"""

from datetime import datetime

from .types import Validity


def membership_validity(
    start: datetime | None,
    end: datetime | None,
    now: datetime,
) -> Validity:
    """Position of `now` relative to a membership access window."""
    if start is not None and now < start:
        return Validity.NOT_YET_VALID
    if end is not None and now > end:
        return Validity.EXPIRED
    return Validity.VALID


def grant_validity(
    valid_from: datetime,
    valid_until: datetime | None,
    revoked_at: datetime | None,
    now: datetime,
) -> Validity:
    """
    Validity of a resource or cross-lab grant.

    Revocation wins over the window: a revoked grant is never valid,
    whatever valid_until says.
    """
    if revoked_at is not None:
        return Validity.REVOKED
    return membership_validity(valid_from, valid_until, now)
