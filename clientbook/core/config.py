# clientbook/core/config.py
"""
Application settings loaded from the environment (and .env via python-dotenv).
"""
import os

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "data")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    secret_key: str = ""
    database_url: str | None = None
    app_env: str = "development"
    allowed_origins: str = "http://localhost:5173,http://localhost:8000"
    allowed_hosts: str = "localhost,127.0.0.1,testserver"
    access_token_lifetime_seconds: int = 30 * 24 * 3600  # 30 days
    rate_limit: str = "120/minute"

    # Reminder scheduling
    reminder_rescan_seconds: int = 300
    reminder_lookahead_hours: int = 24
    reminder_grace_minutes: int = 60
    default_reminder_time: str = "09:00"

    # CLI agent
    api_url: str = "http://localhost:8000"

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def hosts(self) -> list[str]:
        return [h.strip() for h in self.allowed_hosts.split(",") if h.strip()]

    def resolved_database_url(self) -> str:
        """DATABASE_URL if set, otherwise a SQLite file under data/db/."""
        if self.database_url:
            return self.database_url
        database_file = os.path.join(DATA_DIR, "db", "clientbook.sqlite")
        os.makedirs(os.path.dirname(database_file), exist_ok=True)
        return f"sqlite+aiosqlite:///{database_file}"


settings = Settings()
