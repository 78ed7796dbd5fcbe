from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from app.models.tasks import TaskStatus
from app.services.schedule import MAX_SHIFT_AMOUNT, ShiftUnit
from app.utils.sanitization import sanitize_string


# ── Task schemas ────────────────────────────────────────

class TaskBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    owner_roles: list[str] = Field(default_factory=list)
    start_date: date
    end_date: date

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class TaskCreate(TaskBase):
    percent_done: int = Field(0, ge=0, le=100)
    status: TaskStatus = TaskStatus.ON_TRACK
    delay_reason: str | None = None
    assigned_user_token: str | None = None
    assigned_display_name: str | None = None
    budget: float | None = Field(None, ge=0)


class TaskUpdate(BaseModel):
    # manager fields
    name: str | None = Field(None, min_length=1, max_length=200)
    owner_roles: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    assigned_user_token: str | None = None
    assigned_display_name: str | None = None
    budget: float | None = Field(None, ge=0)
    # assignee fields
    percent_done: int | None = Field(None, ge=0, le=100)
    status: TaskStatus | None = None
    delay_reason: str | None = None


class Task(TaskBase):
    id: int
    project_id: str
    percent_done: int
    status: TaskStatus
    delay_reason: str | None = None
    assigned_user_token: str | None = None
    assigned_display_name: str | None = None
    was_shifted: bool = False
    last_shift_date: datetime | None = None
    budget: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ── Progress & comments ─────────────────────────────────

class ProgressUpdateCreate(BaseModel):
    percent_done: int = Field(..., ge=0, le=100)
    status: TaskStatus
    delay_reason: str | None = None
    note: str | None = None
    photo_path: str | None = Field(None, max_length=500)

    @field_validator("note", "delay_reason", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class ProgressUpdate(BaseModel):
    id: int
    task_id: int
    author_role: str
    author_user_token: str | None = None
    percent_done: int
    status: TaskStatus
    delay_reason: str | None = None
    note: str | None = None
    photo_path: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    message: str = Field(..., min_length=1)

    @field_validator("message", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Comment(BaseModel):
    id: int
    task_id: int
    author_role: str
    message: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ── Schedule operations ─────────────────────────────────

class ShiftRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: int = Field(..., ge=-MAX_SHIFT_AMOUNT, le=MAX_SHIFT_AMOUNT)
    unit: ShiftUnit = ShiftUnit.DAYS
    skip_done: bool = Field(True, alias="skipDone")


class ShiftResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shifted_count: int = Field(..., alias="shiftedCount")


class RebaselineRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_baseline_start: date = Field(..., alias="newBaselineStart")
    reset_statuses: bool = Field(True, alias="resetStatuses")
    clear_delay_reasons: bool = Field(True, alias="clearDelayReasons")


class RebaselineResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shifted_count: int = Field(..., alias="shiftedCount")
    delta_days: int = Field(..., alias="deltaDays")
