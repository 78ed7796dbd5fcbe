from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db as db_session
from app.schemas.auth import SessionIdentity
from app.services.sessions import validate_session
from app.utils.exceptions import AuthenticationError
from app.utils.security import decode_client_key

bearer_scheme = HTTPBearer(auto_error=False)

def get_db(db:Session=Depends(db_session)):
    return db

async def verify_client(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """The Authorization header identifies the calling application, not the end user."""
    if credentials is None:
        raise AuthenticationError("Missing application key")
    app_name = decode_client_key(credentials.credentials)
    if app_name is None:
        raise AuthenticationError("Invalid application key")
    return app_name

def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

async def get_optional_session(
    db: AsyncSession = Depends(get_db),
    x_session_token: str | None = Header(None),
) -> SessionIdentity | None:
    return await validate_session(db, x_session_token)

async def get_current_session(
    session: SessionIdentity | None = Depends(get_optional_session),
) -> SessionIdentity:
    if session is None:
        raise AuthenticationError("Invalid or expired session")
    return session
