# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User records the scheduling engine reads and updates.

Only the fields the engine needs are mapped: names for templated messages,
the parent link for low-credit alerts, and the experience point counter.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Portal user (admin, teacher, student or parent)."""

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="Student")
    parent_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    experience_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def full_name(self) -> str:
        """First and last name joined with a space."""
        return f"{self.first_name} {self.last_name}".strip()
