from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, update
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import commit_or_raise
from app.dependencies import get_db, get_current_session, verify_client
from app.models.tasks import Task
from app.models.user import AuditLog, User, UserSession
from app.schemas.auth import AuditLogResponse, SessionIdentity, UserResponse
from app.services import policy
from app.utils.exceptions import NotFoundError, PermissionDeniedError

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(verify_client)])

def require_admin(session: SessionIdentity = Depends(get_current_session)) -> SessionIdentity:
    if not policy.is_admin(session):
        raise PermissionDeniedError("Admin access required")
    return session

@router.get("/audit-logs", response_model=list[AuditLogResponse])
async def list_audit_logs(
    limit: int = Query(100, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: SessionIdentity = Depends(require_admin),
):
    result = await db.execute(
        select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
    )
    return result.scalars().all()

@router.get("/users", response_model=list[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin: SessionIdentity = Depends(require_admin),
):
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return result.scalars().all()

@router.delete("/users/{user_token}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_token: str,
    db: AsyncSession = Depends(get_db),
    admin: SessionIdentity = Depends(require_admin),
):
    result = await db.execute(select(User).filter(User.user_token == user_token))
    user = result.scalars().first()
    if not user:
        raise NotFoundError("User not found")

    await db.execute(delete(UserSession).where(UserSession.user_token == user_token))
    await db.execute(
        update(Task)
        .where(Task.assigned_user_token == user_token)
        .values(assigned_user_token=None, assigned_display_name=None)
    )
    await db.delete(user)
    await commit_or_raise(db, "delete user")
    return None
