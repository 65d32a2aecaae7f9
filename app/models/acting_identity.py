from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class IdentityStatus(StrEnum):
    RESOLVED = "resolved"  # subject and role both known
    UNRESOLVED = "unresolved"  # something missing, no usable token offered
    INVALID = "invalid"  # a token was offered and failed verification


@dataclass(frozen=True, slots=True)
class ActingIdentity:
    """Who is performing a mutation, built fresh for each request.

    Either field may be None.  Callers decide what a missing field means;
    the policy engine treats a missing role as unprivileged and a missing
    subject as "identity not established".
    """

    subject_id: str | None
    role: str | None
    status: IdentityStatus

    @property
    def has_subject(self) -> bool:
        return self.subject_id is not None

    def is_subject(self, user_id: UUID) -> bool:
        if self.subject_id is None:
            return False
        # Ids arrive in any UUID spelling (case, hyphens, braces).
        try:
            return UUID(self.subject_id.strip()) == user_id
        except ValueError:
            return self.subject_id == str(user_id)
