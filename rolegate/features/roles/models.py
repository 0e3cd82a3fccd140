"""
Organization and Role tables.
"""
from sqlalchemy import String, ForeignKey, Table, Column, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rolegate.core.database.base import Base, TimestampMixin, generate_ulid
from rolegate.features.catalog.models import PermissionRow


# Role-Permission relationship
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String(26), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(26), ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class OrganizationRow(Base, TimestampMixin):
    """
    Bare grouping entity that scopes roles.

    Business data about organizations lives elsewhere; ``name`` is for display.
    """
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<OrganizationRow(id={self.id}, name={self.name!r})>"


class RoleRow(Base, TimestampMixin):
    """
    Role scoped to one organization and one profile.

    ``value`` is the human-referenceable slug, unique per (organization, profile).
    """
    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("organization_id", "profile", "value", name="uq_role_org_profile_value"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    organization_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    profile: Mapped[str] = mapped_column(
        String(100), ForeignKey("profiles.value"), nullable=False, index=True
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(String(100), nullable=False)

    permissions: Mapped[list[PermissionRow]] = relationship(
        PermissionRow,
        secondary=role_permissions,
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<RoleRow(id={self.id}, value={self.value!r}, org_id={self.organization_id})>"
