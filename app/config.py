"""AdsIntel — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Meta API ──
    meta_api_version: str = "v18.0"
    meta_base_url: str = "https://graph.facebook.com"
    meta_insights_level: str = "campaign"  # campaign | ad
    meta_webhook_verify_token: Optional[str] = None

    # ── Database ──
    database_url: str = ""

    # ── Secrets ──
    secret_encryption_key: Optional[str] = None  # Fernet key, no default

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    sync_hour: int = 3  # Daily Meta sync at 3 AM

    # ── Ingestion ──
    default_sync_days: int = 30
    dispatch_page_size: int = 50
    strict_date_parsing: bool = False
    crm_finished_status: str = "Finalizado"
    default_channel: str = "meta"

    # ── Reporting ──
    average_ticket: float = 350000.0  # Revenue per sale for ROI

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adsintel.db"
        return "sqlite:///./adsintel.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
