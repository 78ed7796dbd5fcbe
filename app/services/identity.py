import asyncio
import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.config import settings
from app.database import commit_or_raise
from app.models.user import User
from app.schemas.auth import AuthResponse
from app.services.sessions import issue_session
from app.utils.exceptions import (
    AuthenticationError,
    ConflictError,
    LegacyAccountError,
    StorageError,
    ValidationError,
)
from app.utils.roles import ELEVATED_ROLES, Role, canonical_role
from app.utils.sanitization import normalize_name
from app.utils.security import generate_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


async def throttle_failure():
    """Crude brute-force brake applied before answering a failed credential check."""
    if settings.AUTH_FAILURE_DELAY_SECONDS > 0:
        await asyncio.sleep(settings.AUTH_FAILURE_DELAY_SECONDS)


def _require(**fields):
    if any(not value for value in fields.values()):
        raise ValidationError("Missing required fields")


async def find_user(db: AsyncSession, project_id: str, name_norm: str, role: Role) -> User | None:
    result = await db.execute(
        select(User).filter(
            User.project_id == project_id,
            User.name_norm == name_norm,
            User.role == role.value,
        )
    )
    return result.scalars().first()


async def _mark_seen(db: AsyncSession, user: User):
    user.last_seen = datetime.now(timezone.utc)
    await commit_or_raise(db, "update user")


async def _login_existing(db: AsyncSession, user: User, password: str) -> User:
    if not user.password_hash:
        logger.warning("[AUTH] Legacy account without password for %s/%s", user.name_norm, user.role)
        raise LegacyAccountError()

    if not verify_password(password, user.password_hash):
        logger.warning("[AUTH] Wrong password for %s/%s", user.name_norm, user.role)
        await throttle_failure()
        raise AuthenticationError("Wrong password for this name and role")

    await _mark_seen(db, user)
    return user


async def find_or_create_identity(
    db: AsyncSession,
    project_id: str,
    display_name: str,
    role: Role,
    contractor_role: str | None,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate the (project, name, role) identity or register it.

    Registration is an optimistic insert: if a concurrent signup wins the
    unique key first, the insert fails and the call is retried once as a login
    against the row that now exists.

    Returns the user and the mode, "login" or "register".
    """
    name_norm = normalize_name(display_name)

    existing = await find_user(db, project_id, name_norm, role)
    if existing is not None:
        return await _login_existing(db, existing, password), "login"

    user = User(
        user_token=generate_token(),
        project_id=project_id,
        display_name=display_name,
        name_norm=name_norm,
        role=role.value,
        contractor_role=contractor_role if role is Role.CONTRACTOR else None,
        password_hash=get_password_hash(password),
        last_seen=datetime.now(timezone.utc),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("[AUTH] Concurrent registration for %s/%s, retrying as login", name_norm, role.value)

        retry_user = await find_user(db, project_id, name_norm, role)
        if retry_user is None:
            raise StorageError("Could not create user")
        if not verify_password(password, retry_user.password_hash):
            raise ConflictError("This name and role already exists with a different password")

        await _mark_seen(db, retry_user)
        return retry_user, "login"

    logger.info("[AUTH] Registered %s/%s in project %s", name_norm, role.value, project_id)
    return user, "register"


async def register_or_login(
    db: AsyncSession,
    project_id: str,
    display_name: str,
    role: str,
    password: str,
    contractor_role: str | None = None,
    ip_address: str | None = None,
) -> AuthResponse:
    _require(project_id=project_id, display_name=display_name, role=role, password=password)
    role = canonical_role(role)

    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")

    user, mode = await find_or_create_identity(db, project_id, display_name, role, contractor_role, password)

    session = await issue_session(
        db,
        user,
        project_id=project_id,
        ip_address=ip_address,
        audit_action="sign_in" if mode == "login" else "register",
        audit_details={"display_name": user.display_name, "role": user.role, "mode": mode},
    )
    return AuthResponse(mode=mode, session=session)


# ── Access-code entry ───────────────────────────────────

def _code_matches(candidate: str, expected: str) -> bool:
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def resolve_code_role(code: str, requested_role: str | None) -> tuple[Role, str | None]:
    """
    Map a shared access code onto a role grant.

    Returns (role, contractor_role). Raises ValidationError when the elevated
    code comes without a valid elevated role, and AuthenticationError for an
    unknown code (the caller is expected to throttle).
    """
    if _code_matches(code, settings.CONTRACTOR_ACCESS_CODE):
        return Role.CONTRACTOR, requested_role or settings.DEFAULT_CONTRACTOR_ROLE

    if _code_matches(code, settings.ELEVATED_ACCESS_CODE):
        try:
            role = canonical_role(requested_role) if requested_role else None
        except ValidationError:
            role = None
        if role not in ELEVATED_ROLES:
            raise ValidationError("Invalid role for elevated code")
        return role, None

    raise AuthenticationError("Invalid access code")


async def find_or_create_code_identity(
    db: AsyncSession, display_name: str, role: Role, contractor_role: str | None
) -> tuple[User, str]:
    # Code-based users are not scoped to a project
    name_norm = normalize_name(display_name)
    filters = [
        User.project_id.is_(None),
        User.name_norm == name_norm,
        User.role == role.value,
    ]
    if contractor_role is None:
        filters.append(User.contractor_role.is_(None))
    else:
        filters.append(User.contractor_role == contractor_role)

    result = await db.execute(select(User).filter(*filters))
    user = result.scalars().first()
    if user is not None:
        await _mark_seen(db, user)
        return user, "login"

    user = User(
        user_token=generate_token(),
        project_id=None,
        display_name=display_name,
        name_norm=name_norm,
        role=role.value,
        contractor_role=contractor_role,
        last_seen=datetime.now(timezone.utc),
    )
    db.add(user)
    await commit_or_raise(db, "create user")
    return user, "register"


async def verify_access_code(
    db: AsyncSession,
    code: str,
    display_name: str,
    role: str | None = None,
    ip_address: str | None = None,
) -> AuthResponse:
    _require(code=code, display_name=display_name)

    try:
        granted_role, contractor_role = resolve_code_role(code, role)
    except AuthenticationError:
        logger.warning("[AUTH] Invalid access code attempt for %s", normalize_name(display_name))
        await throttle_failure()
        raise

    user, mode = await find_or_create_code_identity(db, display_name, granted_role, contractor_role)

    session = await issue_session(
        db,
        user,
        project_id=None,
        ip_address=ip_address,
        audit_action="sign_in",
        audit_details={"display_name": user.display_name, "role": user.role, "mode": "code"},
    )
    return AuthResponse(mode=mode, session=session)
