"""
Catalog tables.

Seeded at deployment and append-only afterwards.
"""
from sqlalchemy import String, ForeignKey, Table, Column, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rolegate.core.database.base import Base, TimestampMixin, generate_ulid


# Profile-Permission validity mapping
profile_permissions = Table(
    "profile_permissions",
    Base.metadata,
    Column("profile", String(100), ForeignKey("profiles.value", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(26), ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class OperationRow(Base, TimestampMixin):
    __tablename__ = "operations"

    value: Mapped[str] = mapped_column(String(50), primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<OperationRow(value={self.value!r})>"


class ObjectTypeRow(Base, TimestampMixin):
    __tablename__ = "objects"

    value: Mapped[str] = mapped_column(String(50), primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<ObjectTypeRow(value={self.value!r})>"


class PermissionRow(Base, TimestampMixin):
    """
    An (operation, object) pair.

    ``name`` is the "<operation>:<object>" key, e.g. "read:invoice".
    """
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("operation", "object_type", name="uq_permission_pair"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(101), unique=True, nullable=False, index=True)
    operation: Mapped[str] = mapped_column(
        String(50), ForeignKey("operations.value"), nullable=False, index=True
    )
    object_type: Mapped[str] = mapped_column(
        String(50), ForeignKey("objects.value"), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    profiles: Mapped[list["ProfileRow"]] = relationship(
        "ProfileRow",
        secondary=profile_permissions,
        back_populates="permissions",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<PermissionRow(id={self.id}, name={self.name!r})>"


class ProfileRow(Base, TimestampMixin):
    __tablename__ = "profiles"

    value: Mapped[str] = mapped_column(String(100), primary_key=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    permissions: Mapped[list["PermissionRow"]] = relationship(
        "PermissionRow",
        secondary=profile_permissions,
        back_populates="profiles",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<ProfileRow(value={self.value!r}, label={self.label!r})>"
