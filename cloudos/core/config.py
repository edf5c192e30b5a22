# cloudos/core/config.py
import os
from datetime import timedelta
from typing import ClassVar, List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _default_database_url() -> str:
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(data_dir, 'cloudos.db')}")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> List[str]:
    return [p.strip() for p in os.getenv(name, default).split(",") if p.strip()]


class Settings(BaseModel):
    # Sessions always live 24h server-side, whatever the token's own exp says
    SESSION_TTL: ClassVar[timedelta] = timedelta(hours=24)
    SERVICE_NAME: ClassVar[str] = "CloudOS.Jermis API"

    ENVIRONMENT: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "production"))
    API_VERSION: str = Field(default_factory=lambda: os.getenv("API_VERSION", "v1"))
    API_PREFIX: str = Field(default_factory=lambda: os.getenv("API_PREFIX", "/api/v1"))

    DATABASE_URL: str = Field(default_factory=_default_database_url)
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    ALGORITHM: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")))

    LOGIN_RATE_LIMIT_MAX_ATTEMPTS: int = Field(default_factory=lambda: int(os.getenv("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", "5")))
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = Field(default_factory=lambda: int(os.getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "900")))
    AUDIT_SKIP_PATHS: List[str] = Field(default_factory=lambda: _env_list("AUDIT_SKIP_PATHS", "/health,/auth/verify"))

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:3000"))
    FRONTEND_URL: str = Field(default_factory=lambda: os.getenv("FRONTEND_URL", "http://localhost:3000"))

    AZURE_CLIENT_ID: str = Field(default_factory=lambda: os.getenv("AZURE_CLIENT_ID", ""))
    AZURE_CLIENT_SECRET: str = Field(default_factory=lambda: os.getenv("AZURE_CLIENT_SECRET", ""))
    AZURE_TENANT_ID: str = Field(default_factory=lambda: os.getenv("AZURE_TENANT_ID", "common"))
    AZURE_REDIRECT_URI: str = Field(default_factory=lambda: os.getenv("AZURE_REDIRECT_URI", ""))
    AZURE_HTTP_TIMEOUT_SECONDS: float = Field(default_factory=lambda: float(os.getenv("AZURE_HTTP_TIMEOUT_SECONDS", "10")))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    LOG_JSON: bool = Field(default_factory=lambda: _env_bool("LOG_JSON", "false"))
    METRICS_ENABLED: bool = Field(default_factory=lambda: _env_bool("METRICS_ENABLED", "true"))
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", "true"))

    ADMIN_EMAIL: str = Field(default_factory=lambda: os.getenv("ADMIN_EMAIL", "admin@jermis.com"))
    ADMIN_INITIAL_PASSWORD: str = Field(default_factory=lambda: os.getenv("ADMIN_INITIAL_PASSWORD", ""))

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def azure_authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.AZURE_TENANT_ID}"

    @property
    def azure_configured(self) -> bool:
        return bool(self.AZURE_CLIENT_ID and self.AZURE_CLIENT_SECRET and self.AZURE_REDIRECT_URI)


def get_settings() -> Settings:
    return Settings()
