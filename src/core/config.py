from typing import Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Content API (Directus)
    directus_url: str = "http://localhost:8055"
    directus_email: str | None = None
    directus_password: str | None = None
    # Static token wins over email/password login when both are set
    directus_static_token: str | None = None
    directus_timeout_seconds: float = 30.0

    # Known role IDs in the content API
    teacher_role_id: str = "83c708d8-90c4-4835-b066-2d36ec66ac50"
    student_role_id: str = "4dbda2fc-909b-4767-849b-1ab4a0d5d374"

    # Views
    recent_lessons_days: int = 30
    recent_lessons_limit: int = 5

    # App
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    # Can be a comma-separated string or list
    cors_allowed_origins: Union[str, list[str]] = "http://localhost:3000,http://localhost:5173"

    @property
    def has_login(self) -> bool:
        """True when email/password login is configured."""
        return bool(self.directus_email and self.directus_password)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @field_validator("directus_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalize base URL so paths can be appended with a leading slash."""
        if not v:
            raise ValueError("DIRECTUS_URL is required")
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


settings = Settings()
