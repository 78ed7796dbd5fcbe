from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    database_url: str

    # Application keys (bearer credential of the calling app, not the end user)
    SECRET_KEY: str = "something"
    ALGORITHM: str = "HS256"
    CLIENT_KEY_EXPIRE_DAYS: int = 365

    # End-user sessions
    SESSION_TTL_DAYS: int = 30
    MIN_PASSWORD_LENGTH: int = 4
    AUTH_FAILURE_DELAY_SECONDS: float = 1.0
    BCRYPT_ROUNDS: int = 12

    # Shared access codes
    CONTRACTOR_ACCESS_CODE: str = "BUILD2025"
    ELEVATED_ACCESS_CODE: str = "ADMINMASTER"
    DEFAULT_CONTRACTOR_ROLE: str = "Construction Contractor"

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_FILE: str = "error.log"

    class Config:
        env_file = ".env"

settings = Settings()
