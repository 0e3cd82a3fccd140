"""
Audit logging helper.
"""
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.features.audit.models import AuditLog
from rolegate.utils import get_logger


log = get_logger(__name__)


async def create_audit_log(
    db: AsyncSession,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    organization_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """
    Add an audit log entry to the current session.

    The entry is committed together with the change it describes.

    Args:
        db: Database session
        user_id: User performing the action
        action: Action performed (e.g. "create", "assign", "revoke", "switch")
        resource_type: Type of resource (e.g. "role", "user_role", "profile")
        resource_id: ID of the resource
        organization_id: Organization context
        details: Additional details
        request: Incoming request, for client IP and user agent
    """
    audit_log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        organization_id=organization_id,
        details=details,
        ip_address=request.client.host if request is not None and request.client else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
    )
    db.add(audit_log)
    await db.flush()

    log.info(
        "Audit: user=%s action=%s resource=%s:%s org=%s",
        user_id, action, resource_type, resource_id, organization_id
    )
    return audit_log
