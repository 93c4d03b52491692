# wayfarer/app/services/audit.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.models.role_audit import RoleChangeAudit
from wayfarer.app.models.user import Role

logger = logging.getLogger(__name__)


def record_role_change(
    db: AsyncSession,
    *,
    acting_admin_id: str,
    target_id: str,
    old_role: Role,
    new_role: Role,
) -> RoleChangeAudit:
    """
    Stage an audit row in the caller's transaction.

    The caller commits it together with the role update, so a role
    change is never persisted without its audit record.
    """
    event = RoleChangeAudit(
        acting_admin_id=acting_admin_id,
        target_id=target_id,
        old_role=old_role.value,
        new_role=new_role.value,
    )
    db.add(event)
    logger.info(
        "role_change acting_admin_id=%s target_id=%s old_role=%s new_role=%s",
        acting_admin_id,
        target_id,
        old_role.value,
        new_role.value,
    )
    return event
