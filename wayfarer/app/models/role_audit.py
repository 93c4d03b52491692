# wayfarer/app/models/role_audit.py
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from wayfarer.app.db.base import Base
from wayfarer.app.models.user import new_id


class RoleChangeAudit(Base):
    """One row per successful role mutation."""
    __tablename__ = "role_change_audit"

    id = Column(String(32), primary_key=True, default=new_id)
    # No foreign keys: audit rows outlive deleted accounts
    acting_admin_id = Column(String(32), index=True, nullable=False)
    target_id = Column(String(32), index=True, nullable=False)
    old_role = Column(String(16), nullable=False)
    new_role = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
