import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

CLIENT_SCOPE = "client"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Not a bcrypt hash (e.g. rows imported from an older store)
        return False


def generate_token() -> str:
    """Opaque, unguessable identifier for users and sessions."""
    return secrets.token_urlsafe(32)


def create_client_key(app_name: str, expires_delta: timedelta | None = None) -> str:
    """
    Mint the bearer key an application sends in the Authorization header.
    It identifies the calling app, never the end user.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.CLIENT_KEY_EXPIRE_DAYS)
    )
    to_encode = {"sub": app_name, "scope": CLIENT_SCOPE, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_client_key(token: str) -> str | None:
    """Return the application name carried by a valid client key, else None."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("scope") != CLIENT_SCOPE:
        return None
    return payload.get("sub")
