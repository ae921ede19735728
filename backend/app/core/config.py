# backend/app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---- Core ----
    PROJECT_NAME: str = "Registration Admin API"
    ENV: str = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ---- Backend selection ----
    # "supabase" talks to the hosted project, "sql" uses DATABASE_URL locally
    BACKEND: str = "supabase"
    # Use a SYNC sqlite URL (e.g. sqlite:///./data/app.sqlite3)
    DATABASE_URL: str = "sqlite:///./data/app.sqlite3"
    # Comma-separated allowed origins
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # ---- Supabase ----
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    # Elevated scope. Never returned to clients.
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    BACKEND_TIMEOUT: float = 15.0

    REGISTRATIONS_TABLE: str = "registration_requests"
    COMPANIES_TABLE: str = "companies"

    # ---- Invitation e-mail ----
    BASE_URL: str = "http://localhost:3000"
    RESET_PASSWORD_PATH: str = "/reset-password"

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip().rstrip("/") for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def reset_redirect_url(self) -> str:
        return f"{self.BASE_URL.rstrip('/')}{self.RESET_PASSWORD_PATH}"

    @property
    def has_service_role(self) -> bool:
        return bool(self.SUPABASE_SERVICE_ROLE_KEY.strip())


@lru_cache
def get_settings() -> Settings:
    return Settings()


# singleton (import this everywhere)
settings = get_settings()
