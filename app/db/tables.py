"""SQLAlchemy table definitions.

Rows map to the frozen dataclasses in app/models/; repos convert between
the two so the domain never sees an ORM object.
"""

from __future__ import annotations

import uuid

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.engine import Base
from app.models.user import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, ROLE_MAX_LENGTH


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # unique index: the store itself refuses a second account per email
    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH), unique=True, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), nullable=False, default=""
    )
    last_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), nullable=False, default=""
    )
    role: Mapped[str] = mapped_column(
        String(ROLE_MAX_LENGTH), nullable=False, default="user"
    )
    profile_img: Mapped[str] = mapped_column(Text, nullable=False, default="")
