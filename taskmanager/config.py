from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "tasks.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TASKMANAGER_", env_file=".env", extra="ignore")

    database_url: str = f"sqlite:///{DEFAULT_DB_PATH}"
    password_secret: str = "salt_secret_key"
    session_days: int = 7
    cookie_name: str = "auth_token"
    cookie_secure: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8000


settings = Settings()
