from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.db.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin','user')", name="role"),
        Index("idx_users_last_login", "last_login_at"),
        Index("idx_users_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'user'"))
    hobbies: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    is_new_user: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    is_password_changed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    is_inactive: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    inactive_flagged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
