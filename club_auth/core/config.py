from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.exceptions import SettingsError
from pydantic import Field, ValidationError, field_validator
from typing import Annotated, List, Any
import json
import sys
from functools import lru_cache
import structlog

logger = structlog.get_logger()


class Settings(BaseSettings):
    """
    Movie club identity service configuration.

    Values are read from environment variables or a local .env file.
    Production deployments must override SECRET_KEY and DATABASE_URL.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        validate_assignment=True,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "The Big Screen Club"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # API settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Big Screen Club Identity Service"

    # Session (bearer) tokens handed out by the HTTP layer
    SECRET_KEY: str = Field(default="dev-only-secret-key-override-in-prod-0000", min_length=32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24, ge=5, le=60 * 24 * 30)

    # Credential hashing - bcrypt cost factor, fixed per deployment
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=15)

    # Verification / reset tokens
    TOKEN_EXPIRY_HOURS: int = Field(default=24, ge=1, le=24 * 7)
    TOKEN_BYTES: int = Field(default=32, ge=32, le=64)  # 32 bytes = 256 bits

    # Password and identifier policy
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=8, le=128)
    PASSWORD_REQUIRE_UPPERCASE: bool = True
    PASSWORD_REQUIRE_LOWERCASE: bool = True
    PASSWORD_REQUIRE_NUMBERS: bool = True
    USERNAME_PATTERN: str = r"^[a-zA-Z0-9_]{3,20}$"
    EMAIL_PATTERN: str = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./club_auth.db"
    DATABASE_POOL_SIZE: int = Field(default=10, ge=1, le=200)
    DATABASE_MAX_OVERFLOW: int = Field(default=20, ge=0, le=200)
    DATABASE_POOL_TIMEOUT: int = Field(default=30, ge=5, le=60)
    DATABASE_POOL_RECYCLE: int = Field(default=1800, ge=300, le=3600)
    AUTO_CREATE_TABLES: bool = True

    # Browser origins allowed to call the API
    # NoDecode: the raw env string reaches split_origins instead of json.loads
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Email delivery (verification and reset links)
    FRONTEND_URL: str = "http://localhost:5173"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_TLS: bool = True
    EMAILS_FROM_EMAIL: str = "no-reply@bigscreenclub.local"
    EMAILS_FROM_NAME: str = "The Big Screen Club"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> List[str]:
        """Accept ``a,b`` or a JSON list from the environment, or a list in code."""
        if v is None:
            return []
        if isinstance(v, str):
            if v.lstrip().startswith("["):
                return json.loads(v)
            return [part.strip() for part in v.split(",") if part.strip()]
        return list(v)

    @field_validator("ENVIRONMENT")
    @classmethod
    def known_environment(cls, v: str) -> str:
        if v not in ENVIRONMENTS:
            raise ValueError(f"ENVIRONMENT must be one of: {', '.join(ENVIRONMENTS)}")
        return v

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


ENVIRONMENTS = ("development", "staging", "production")
WEAK_SECRET_MARKERS = ("dev-only", "change-me", "secret", "password", "12345")


def production_problems(config: Settings) -> List[str]:
    """Settings that are acceptable locally but must not reach production."""
    if not config.is_production:
        return []

    problems = []
    if config.DEBUG:
        problems.append("DEBUG must be False in production")
    if any(marker in config.SECRET_KEY.lower() for marker in WEAK_SECRET_MARKERS):
        problems.append("SECRET_KEY contains weak or default values")
    if config.DATABASE_URL.startswith("sqlite"):
        problems.append("DATABASE_URL cannot use SQLite in production")
    if not config.BACKEND_CORS_ORIGINS:
        problems.append("BACKEND_CORS_ORIGINS must be explicitly set in production")
    return problems


def validate_required_settings(config: Settings) -> None:
    """
    Refuse to start a production deployment with development settings.

    Raises:
        ValueError: Listing every offending setting
    """
    problems = production_problems(config)
    if problems:
        logger.error("Refusing unsafe production configuration", problems=problems)
        raise ValueError("Unsafe production configuration: " + "; ".join(problems))

    logger.info(
        "Settings loaded",
        environment=config.ENVIRONMENT,
        bcrypt_rounds=config.BCRYPT_ROUNDS,
        token_expiry_hours=config.TOKEN_EXPIRY_HOURS,
        smtp_configured=config.smtp_configured,
    )


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process; exit with a readable report when the environment is invalid."""
    try:
        config = Settings()
    except ValidationError as e:
        logger.error("Invalid environment", errors=e.errors())
        lines = [f"  {'.'.join(str(p) for p in err.get('loc', ('?',)))}: {err.get('msg')}" for err in e.errors()]
        sys.exit("Invalid club_auth configuration:\n" + "\n".join(lines))
    except SettingsError as e:
        logger.error("Unreadable environment value", error=str(e))
        sys.exit(f"Invalid club_auth configuration:\n  {e}")

    validate_required_settings(config)
    return config


settings = get_settings()
