from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./hotel_admin.db",
        alias="DATABASE_URL"
    )
    sql_echo: bool = Field(default=False, alias="SQL_ECHO")

    # Bearer tokens are issued by the identity provider; we only verify them
    secret_key: str = Field(
        default="dev-secret-key-at-least-32-characters-long-for-development",
        alias="SECRET_KEY"
    )
    algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    # CORS - Frontend URLs (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        alias="ALLOWED_ORIGINS"
    )

    # ==============================================
    # Availability / inventory
    # ==============================================
    # Days shown on each side of the requested stay
    availability_padding_days: int = Field(default=5, ge=0, alias="AVAILABILITY_PADDING_DAYS")

    # Share of capacity at or below which a date is flagged "low"
    low_availability_ratio: float = Field(default=0.3, gt=0, le=1, alias="LOW_AVAILABILITY_RATIO")

    # Re-read/re-insert attempts when two writers race for the same slot number
    slot_allocation_max_attempts: int = Field(default=5, ge=1, alias="SLOT_ALLOCATION_MAX_ATTEMPTS")

    confirmation_code_max_attempts: int = Field(default=5, ge=1, alias="CONFIRMATION_CODE_MAX_ATTEMPTS")

    # Upper bound on a single stay
    max_stay_nights: int = Field(default=365, ge=1, alias="MAX_STAY_NIGHTS")

    # Rate limiting (slowapi, in-memory storage)
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate SECRET_KEY is strong enough"""
        if not v:
            raise ValueError("SECRET_KEY is required and cannot be empty")
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator('database_url')
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        # Hosted Postgres hands out postgres://, SQLAlchemy needs postgresql://
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        return origins if origins else ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
