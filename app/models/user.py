from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


# Column widths of the users table.
EMAIL_MAX_LENGTH = 320
NAME_MAX_LENGTH = 255
ROLE_MAX_LENGTH = 64


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    email: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    role: str = "user"
    profile_img: str = ""

    @staticmethod
    def new(
        *,
        email: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
        role: str = "user",
        profile_img: str = "",
    ) -> User:
        # Single construction point: ids are minted here and emails normalized.
        return User(
            id=uuid4(),
            email=normalize_email(email),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            profile_img=profile_img,
        )
