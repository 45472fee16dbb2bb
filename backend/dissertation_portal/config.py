# dissertation_portal/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Dissertation Portal API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for the single-page frontend
    CORS_ORIGINS: list[str] = _env_list(
        "CORS_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    )

    # Password hashing: static salt constant mixed with the lowercased email
    password_salt: str = os.getenv("PASSWORD_SALT", "PG_DISSERTATION_SYSTEM_2024_SECURE_SALT")

    # Session tokens
    token_ttl_hours: int = int(os.getenv("TOKEN_TTL_HOURS", "24"))
    token_refresh_threshold_hours: int = int(os.getenv("TOKEN_REFRESH_THRESHOLD_HOURS", "2"))
    access_cookie_name: str = "accessToken"
    cookie_secure: bool = _env_flag("COOKIE_SECURE")

    # Account lockout policy
    max_failed_login_attempts: int = int(os.getenv("MAX_FAILED_LOGIN_ATTEMPTS", "5"))
    account_lockout_minutes: int = int(os.getenv("ACCOUNT_LOCKOUT_MINUTES", "30"))

    # Audit trail keeps only the most recent entries
    audit_log_cap: int = int(os.getenv("AUDIT_LOG_CAP", "1000"))

    # Onboarding
    temp_password_length: int = int(os.getenv("TEMP_PASSWORD_LENGTH", "12"))

    # Bootstrap accounts
    seed_demo_users: bool = _env_flag("SEED_DEMO_USERS")
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@university.edu")
    admin_password: str | None = os.getenv("ADMIN_PASSWORD")
    admin_name: str = os.getenv("ADMIN_NAME", "System Administrator")


settings = Settings()  # Instantiate configuration
