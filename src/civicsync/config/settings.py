"""Application settings loaded from environment."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed settings for report submission and sync."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    pghost: Optional[str] = Field(default=None, alias="PGHOST")
    pgport: int = Field(default=5432, alias="PGPORT")
    pguser: Optional[str] = Field(default=None, alias="PGUSER")
    pgpassword: Optional[str] = Field(default=None, alias="PGPASSWORD")
    pgdatabase: Optional[str] = Field(default=None, alias="PGDATABASE")

    # Supabase
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")

    # Remote store
    remote_backend: Literal["supabase", "postgres"] = Field(
        default="supabase", alias="REMOTE_BACKEND"
    )
    remote_timeout_seconds: int = Field(default=30, alias="REMOTE_TIMEOUT_SECONDS")
    reports_table: str = Field(default="reports", alias="REPORTS_TABLE")
    nearby_function: str = Field(default="get_nearby_reports", alias="NEARBY_FUNCTION")
    nearby_radius_km: float = Field(default=5.0, alias="NEARBY_RADIUS_KM")

    # Local queue
    local_queue_dir: Path = Field(default=Path(".civicsync"), alias="LOCAL_QUEUE_DIR")
    local_queue_key: str = Field(default="local_reports", alias="LOCAL_QUEUE_KEY")
    sync_after_submit: bool = Field(default=True, alias="SYNC_AFTER_SUBMIT")

    # Runtime
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    run_env: str = Field(default="local", alias="RUN_ENV")

    def get_database_url(self) -> str:
        """Return a usable database URL or raise."""
        if self.database_url:
            return self.database_url

        if all([self.pghost, self.pguser, self.pgpassword, self.pgdatabase]):
            return (
                "postgresql://"
                f"{self.pguser}:{self.pgpassword}@{self.pghost}:{self.pgport}/"
                f"{self.pgdatabase}"
            )

        raise ValueError("DATABASE_URL or PG* env vars must be set")

    def get_supabase_key(self) -> str:
        """Return the service role key if present, else the anon key, or raise."""
        key = self.supabase_service_role_key or self.supabase_anon_key
        if not self.supabase_url or not key:
            raise ValueError("SUPABASE_URL and a Supabase API key must be set")
        return key

    def local_queue_path(self) -> Path:
        """File backing the configured local queue key."""
        return self.local_queue_dir / f"{self.local_queue_key}.json"
