"""Role labels and the privilege predicate.

Stored roles are an open set of strings ("user", "editor", ...).  Only the
labels in PrivilegedRole may act on other accounts or change roles, and
is_privileged() is the one place that decision is made.
"""

from __future__ import annotations

from enum import StrEnum

DEFAULT_ROLE = "user"


class PrivilegedRole(StrEnum):
    ADMIN = "admin"
    SUPER_ADMIN = "super admin"


_PRIVILEGED = frozenset(r.value for r in PrivilegedRole)


def is_privileged(role: str | None) -> bool:
    """True for "admin" / "super admin", compared case-insensitively."""
    if not role:
        return False
    return role.strip().lower() in _PRIVILEGED
