"""
User and UserRole tables.
"""
from datetime import datetime
from sqlalchemy import String, Boolean, ForeignKey, Table, Column, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from rolegate.core.database.base import Base, TimestampMixin, generate_ulid


# User-Role membership edges
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", String(26), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("assigned_at", DateTime(timezone=True), nullable=False, default=datetime.now),
    Column("assigned_by_id", String(26), ForeignKey("users.id"), nullable=True),
)


class UserRow(Base, TimestampMixin):
    """
    Stored user state.

    ``active_profile`` is null until the user explicitly switches into a
    profile they hold a role in.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # System builders / operators; bypass the permission check on admin routes only
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    active_profile: Mapped[str | None] = mapped_column(
        String(100),
        ForeignKey("profiles.value", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id}, name={self.name!r}, active_profile={self.active_profile})>"
