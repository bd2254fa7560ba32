import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

APP_VERSION = "1.0.0"


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.app_env = os.getenv("APP_ENV", "development").strip().lower()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/app.db")).resolve()
        self.upload_dir = Path(os.getenv("UPLOAD_DIR", "uploads/payment-screenshots")).resolve()
        self.max_upload_bytes = self._get_int("MAX_UPLOAD_BYTES", default=5 * 1024 * 1024)
        self.user_token_secret = os.getenv("USER_TOKEN_SECRET", "change-me-user")
        self.user_token_exp_minutes = self._get_int("USER_TOKEN_EXP_MINUTES", default=60 * 24 * 7)
        self.admin_token_secret = os.getenv("ADMIN_TOKEN_SECRET", "change-me-admin")
        self.admin_token_exp_minutes = self._get_int("ADMIN_TOKEN_EXP_MINUTES", default=60 * 24 * 7)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=10)
        self.subscription_days = self._get_int("SUBSCRIPTION_DAYS", default=30)
        self.admin_default_email = os.getenv("ADMIN_EMAIL")
        self.admin_default_password = os.getenv("ADMIN_PASSWORD")
        self.admin_default_name = os.getenv("ADMIN_NAME", "Administrator")
        self.api_rate_limit = os.getenv("API_RATE_LIMIT", "100/15minutes").strip()
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def rate_limit_enabled(self) -> bool:
        return bool(self.api_rate_limit) and self.api_rate_limit != "0"

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
