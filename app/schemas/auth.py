from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from app.utils.sanitization import sanitize_string


class RegisterOrLoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(..., alias="projectId", min_length=1)
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=100)
    role: str = Field(..., min_length=1)
    contractor_role: str | None = Field(None, alias="contractorRole", max_length=100)
    password: str = Field(..., min_length=1)

    @field_validator("display_name", "contractor_role", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class VerifyCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(..., min_length=1)
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=100)
    role: str | None = None

    @field_validator("display_name", "role", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class ValidateSessionRequest(BaseModel):
    # Optional so that a missing token answers 401 like any other invalid session
    session_token: str | None = None


class SignOutRequest(BaseModel):
    session_token: str = Field(..., min_length=1)


class SessionOut(BaseModel):
    """Full session handed to the client, which caches it until expires_at."""
    session_token: str
    user_token: str
    display_name: str
    role: str
    contractor_role: str | None = None
    project_id: str | None = None
    expires_at: datetime


class SessionIdentity(BaseModel):
    """Public identity behind a validated session."""
    user_token: str
    display_name: str
    role: str
    contractor_role: str | None = None
    project_id: str | None = None


class AuthResponse(BaseModel):
    success: bool = True
    mode: str
    session: SessionOut


class ValidateSessionResponse(BaseModel):
    valid: bool
    session: SessionIdentity | None = None
    error: str | None = None


class UserResponse(BaseModel):
    user_token: str
    project_id: str | None = None
    display_name: str
    role: str
    contractor_role: str | None = None
    created_at: datetime | None = None
    last_seen: datetime | None = None
    last_active_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AuditLogResponse(BaseModel):
    id: int
    user_token: str | None = None
    action: str
    details: dict
    ip_address: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
