from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dwellwell.utils.env_bool import env_to_bool

ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"
DEFAULT_TEMPLATE_SEED_DIR = (
    Path(__file__).resolve().parent.parent / "maintenance" / "seeds"
)


class DatabaseSettings(BaseSettings):
    """Database settings"""

    POSTGRES_HOST: str = Field("api-db")
    POSTGRES_USER: str = Field("postgres")
    POSTGRES_PASSWORD: str = Field("password")
    POSTGRES_DB: str = Field("dwellwell")
    POSTGRES_PORT: int = Field(5432)
    DATABASE_URL: Optional[str] = Field(
        None,
        description="Full async SQLAlchemy URL; overrides the POSTGRES_* parts.",
    )

    @property
    def POSTGRES_URL(self) -> str:
        """Construct PostgreSQL URL from components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Construct synchronous PostgreSQL URL for Alembic"""
        if self.DATABASE_URL:
            return self.DATABASE_URL.replace("+asyncpg", "+psycopg2").replace(
                "+aiosqlite", ""
            )
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )


class SecuritySettings(BaseSettings):
    """Security settings"""

    JWT_SECRET_KEY: Optional[str] = Field("test_jwt_secret_key")
    JWT_LIFETIME_SECONDS: int = Field(3600)

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )


class OIDCSettings(BaseSettings):
    """Authentication settings"""

    AUTH_PROVIDER: str = Field(
        "disabled",
        description="Authentication provider: 'disabled' or 'default'.",
    )
    DEFAULT_USER_ID: Optional[str] = Field(
        None,
        description="Default user ID for 'disabled' auth_provider mode.",
    )
    DEFAULT_USER_EMAIL: Optional[str] = Field(
        None,
        description="Default user email for 'disabled' auth_provider mode.",
    )
    DEFAULT_USER_PASSWORD: Optional[str] = Field(
        "default_password_please_change",
        description="Password used when the default user has to be created.",
    )
    DEFAULT_USER_IS_SUPERUSER: bool = Field(
        True,
        description="Grant template administration to the default user.",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )


class MaintenanceSettings(BaseSettings):
    """Settings for maintenance task scheduling and listing."""

    default_snooze_days: int = Field(
        7,
        description="Days a task is pushed back when no snooze length is given.",
    )
    due_soon_days: int = Field(
        7,
        description="Window used by the dueSoon task filter.",
    )
    list_default_limit: int = Field(100)
    list_max_limit: int = Field(500)
    template_seed_dir: Path = Field(
        DEFAULT_TEMPLATE_SEED_DIR,
        description="Directory holding YAML task template seed documents.",
    )

    model_config = SettingsConfigDict(
        env_prefix="MAINTENANCE_",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("list_max_limit", "list_default_limit", "default_snooze_days")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be at least 1")
        return value


class AppSettings(BaseSettings):
    """Main application settings"""

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oidc: OIDCSettings = Field(default_factory=OIDCSettings)
    maintenance: MaintenanceSettings = Field(default_factory=MaintenanceSettings)

    log_level: str = Field("INFO")
    structured_logs: bool = Field(False)
    cors_origins: str = Field(
        "http://localhost:5173",
        description="Comma-separated origins allowed to call the API from a browser.",
    )

    @field_validator("structured_logs", mode="before")
    @classmethod
    def _coerce_bool(cls, v):
        """Ensure an empty string or malformed boolean env value becomes False."""
        return env_to_bool(v, default=False)

    @property
    def cors_origin_list(self) -> list[str]:
        return [item.strip() for item in self.cors_origins.split(",") if item.strip()]

    def model_post_init(self, __context: Any) -> None:  # type: ignore[override]
        super().model_post_init(__context)
        maintenance = self.maintenance
        if maintenance.list_default_limit > maintenance.list_max_limit:
            maintenance.list_default_limit = maintenance.list_max_limit

    model_config = SettingsConfigDict(extra="forbid")


# Create a global settings instance
settings = AppSettings()
