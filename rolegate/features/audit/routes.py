"""
Audit log routes.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.database.engine import get_db
from rolegate.features.audit.models import AuditLog
from rolegate.features.audit.schemas import AuditLogListResponse, AuditLogResponse
from rolegate.features.memberships.dependencies import get_current_admin_user
from rolegate.features.memberships.entities import User


router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    admin: Annotated[User, Depends(get_current_admin_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    skip: int = 0,
    limit: int = 50,
    organization_id: Optional[str] = None,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
):
    """List audit logs with optional filtering (admin only)."""
    stmt = select(AuditLog)

    if organization_id:
        stmt = stmt.where(AuditLog.organization_id == organization_id)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if resource_type:
        stmt = stmt.where(AuditLog.resource_type == resource_type)

    # Get total count
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    # Get paginated results
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    entries = result.scalars().all()

    pages = (total + limit - 1) // limit if limit > 0 else 0
    page = (skip // limit) + 1 if limit > 0 else 1

    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(entry) for entry in entries],
        total=total,
        page=page,
        page_size=limit,
        pages=pages
    )
