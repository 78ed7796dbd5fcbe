from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from app.utils.sanitization import sanitize_string


class ProjectCreate(BaseModel):
    id: str | None = Field(None, min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    custom_contractors: list[str] = Field(default_factory=list)
    project_start_date: date
    project_current_date: date | None = None
    project_duration_months: int = Field(12, ge=9, le=12)

    @field_validator("name", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @model_validator(mode="after")
    def default_current_date(self):
        if self.project_current_date is None:
            self.project_current_date = self.project_start_date
        return self


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    custom_contractors: list[str] | None = None
    project_start_date: date | None = None
    project_current_date: date | None = None
    project_duration_months: int | None = Field(None, ge=9, le=12)
    archived: bool | None = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Project(BaseModel):
    id: str
    name: str
    description: str | None = None
    custom_contractors: list[str] = []
    project_start_date: date
    project_current_date: date
    project_duration_months: int
    archived: bool = False
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class FinanceSummary(BaseModel):
    budget: float
    earned: float
    percent_complete: float
    remaining: float
    task_count: int
    status_counts: dict[str, int]
