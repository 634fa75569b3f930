"""
Staff account model with role and permission grants
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum, JSON, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from hostel.database import Base
from hostel.config.roles import Role


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    role = Column(Enum(Role, values_callable=lambda x: [e.value for e in x]), nullable=False, default=Role.SUB_ADMIN)
    permissions = Column(JSON, nullable=False, default=list)
    permission_access_levels = Column(JSON, nullable=False, default=dict)
    custom_role_name = Column(String, nullable=True)
    hostel_type = Column(String, nullable=True)  # wardens: boys / girls
    course_ids = Column(JSON, nullable=False, default=list)  # principals
    branch_id = Column(Uuid, ForeignKey("branches.id"), nullable=True)
    requires_password_change = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    branch = relationship("Branch")

    def __repr__(self):
        return f"<Admin {self.username} ({self.role})>"

    @property
    def role_value(self) -> str:
        return self.role.value if isinstance(self.role, Role) else str(self.role)

    def is_super_admin(self) -> bool:
        return self.role_value == Role.SUPER_ADMIN.value

