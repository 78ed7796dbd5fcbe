from enum import Enum

from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.sql import func
from app.database import Base


class TaskStatus(str, Enum):
    ON_TRACK = "On Track"
    DELAYED = "Delayed"
    BLOCKED = "Blocked"
    DONE = "Done"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    owner_roles = Column(JSON, nullable=False, default=list)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    percent_done = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=TaskStatus.ON_TRACK.value)
    delay_reason = Column(Text, nullable=True)
    assigned_user_token = Column(String(64), ForeignKey("users.user_token", ondelete="SET NULL"), nullable=True)
    assigned_display_name = Column(String(100), nullable=True)
    was_shifted = Column(Boolean, default=False, nullable=False)
    last_shift_date = Column(DateTime(timezone=True), nullable=True)
    budget = Column(Float, nullable=True)
    created_by_token = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    author_role = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProgressUpdate(Base):
    __tablename__ = "progress_updates"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    author_role = Column(String(100), nullable=False)
    author_user_token = Column(String(64), nullable=True)
    percent_done = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False)
    delay_reason = Column(Text, nullable=True)
    note = Column(Text, nullable=True)
    photo_path = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
