import uuid

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from app.database import Base


def _new_project_id() -> str:
    return str(uuid.uuid4())


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_new_project_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    custom_contractors = Column(JSON, nullable=False, default=list)
    project_start_date = Column(Date, nullable=False)
    # The project's "today"; every schedule computation is relative to it
    project_current_date = Column(Date, nullable=False)
    project_duration_months = Column(Integer, nullable=False, default=12)
    archived = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
