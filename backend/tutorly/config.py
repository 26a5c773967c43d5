from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TUTORLY_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Supabase (identity provider and profile storage)
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str

    users_table: str = "users"
    candidates_table: str = "candidates"
    tutors_table: str = "tutors"

    # Authentication security settings
    max_login_attempts: int = 5  # Maximum role checks / registrations per window
    login_attempt_window: int = 300  # Time window for attempts (5 minutes)
    enable_rate_limiting: bool = True

    # Profile storage: "supabase" or "memory" (local development)
    storage_backend: str = "supabase"

    # Session client
    backend_base_url: str = "http://localhost:5000"
    backend_timeout_seconds: float = 10.0


settings = Settings()
