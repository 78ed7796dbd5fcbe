import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.config import settings
from app.database import commit_or_raise
from app.models.user import AuditLog, User, UserSession
from app.schemas.auth import SessionIdentity, SessionOut
from app.utils.security import generate_token

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _short(token: str) -> str:
    return f"{token[:6]}..."


def record_audit(db: AsyncSession, user_token: str | None, action: str, details: dict, ip_address: str | None):
    """Stage an append-only audit entry; committed with the caller's unit of work."""
    db.add(AuditLog(user_token=user_token, action=action, details=details, ip_address=ip_address))


async def issue_session(
    db: AsyncSession,
    user: User,
    project_id: str | None,
    ip_address: str | None,
    audit_action: str,
    audit_details: dict,
) -> SessionOut:
    """
    Create a session for an authenticated user and log the event.
    The expiry is absolute: validation never pushes it forward.
    """
    now = _utcnow()
    expires_at = now + timedelta(days=settings.SESSION_TTL_DAYS)
    session_token = generate_token()

    db.add(UserSession(
        session_token=session_token,
        user_token=user.user_token,
        project_id=project_id,
        expires_at=expires_at,
        ip_address=ip_address,
    ))
    record_audit(db, user.user_token, audit_action, audit_details, ip_address)
    await commit_or_raise(db, "create session")

    logger.info("[SESSION] Issued %s for user %s (%s)", _short(session_token), _short(user.user_token), user.role)
    return SessionOut(
        session_token=session_token,
        user_token=user.user_token,
        display_name=user.display_name,
        role=user.role,
        contractor_role=user.contractor_role,
        project_id=project_id,
        expires_at=expires_at,
    )


async def validate_session(
    db: AsyncSession, session_token: str | None, now: datetime | None = None
) -> SessionIdentity | None:
    """
    Resolve a session token to its user's public identity.
    Missing and expired sessions both return None.
    """
    if not session_token:
        return None
    now = now or _utcnow()

    result = await db.execute(
        select(UserSession, User)
        .join(User, User.user_token == UserSession.user_token)
        .filter(UserSession.session_token == session_token, UserSession.expires_at > now)
    )
    row = result.first()
    if row is None:
        return None
    session, user = row

    # Bookkeeping only; a failure here must not invalidate the session
    try:
        session.last_refreshed_at = now
        user.last_active_at = now
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("[SESSION] Could not refresh activity timestamps for %s", _short(session_token), exc_info=True)

    return SessionIdentity(
        user_token=user.user_token,
        display_name=user.display_name,
        role=user.role,
        contractor_role=user.contractor_role,
        project_id=session.project_id,
    )


async def revoke_session(db: AsyncSession, session_token: str, ip_address: str | None = None) -> bool:
    """Delete a session (sign-out). Returns False when there was nothing to delete."""
    result = await db.execute(select(UserSession).filter(UserSession.session_token == session_token))
    session = result.scalars().first()
    if session is None:
        return False

    await db.execute(delete(UserSession).where(UserSession.session_token == session_token))
    record_audit(db, session.user_token, "sign_out", {}, ip_address)
    await commit_or_raise(db, "delete session")
    logger.info("[SESSION] Revoked %s", _short(session_token))
    return True
