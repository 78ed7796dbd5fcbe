from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base

class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # Returning-user key of the password flow
        UniqueConstraint('project_id', 'name_norm', 'role', name='_project_name_role_uc'),
    )

    user_token = Column(String(64), primary_key=True, index=True)
    project_id = Column(String(36), nullable=True, index=True)
    display_name = Column(String(100), nullable=False)
    name_norm = Column(String(100), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # contractor/admin/developer/project_manager
    contractor_role = Column(String(100), nullable=True)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_seen = Column(DateTime(timezone=True), nullable=True)
    last_active_at = Column(DateTime(timezone=True), nullable=True)


class UserSession(Base):
    __tablename__ = "sessions"

    session_token = Column(String(64), primary_key=True, index=True)
    user_token = Column(String(64), ForeignKey("users.user_token", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(String(36), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_refreshed_at = Column(DateTime(timezone=True), nullable=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_token = Column(String(64), nullable=True, index=True)
    action = Column(String(50), nullable=False)  # register/sign_in/sign_out
    details = Column(JSON, nullable=False, default=dict)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
