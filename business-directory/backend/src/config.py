from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

from utils import mask_secret


class Configuration(BaseModel):
    # Supabase
    supabase_url: Optional[str] = Field(default=None)
    supabase_key: Optional[str] = Field(default=None)
    supabase_table: str = Field(default="business_profiles")
    remote_enabled: bool = Field(default=True)
    remote_timeout: float = Field(default=8.0)

    # Listing defaults
    placeholder_image: str = Field(default="/images/placeholder.jpg")
    default_page_size: int = Field(default=6)
    max_page_size: int = Field(default=50)

    # Local fallback data (JSON file); built-in seed when unset
    snapshot_path: Optional[str] = Field(default=None)

    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "supabase_url": os.getenv("SUPABASE_URL"),
            "supabase_key": os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY"),
            "supabase_table": os.getenv("SUPABASE_TABLE"),
            "remote_enabled": os.getenv("REMOTE_ENABLED"),
            "remote_timeout": os.getenv("REMOTE_TIMEOUT"),
            "placeholder_image": os.getenv("PLACEHOLDER_IMAGE"),
            "default_page_size": os.getenv("DEFAULT_PAGE_SIZE"),
            "max_page_size": os.getenv("MAX_PAGE_SIZE"),
            "snapshot_path": os.getenv("BUSINESS_SNAPSHOT_PATH"),
            "log_level": os.getenv("LOG_LEVEL"),
        }

        bool_fields = {"remote_enabled"}

        for k, v in env_map.items():
            if v is None:
                continue
            if k in bool_fields:
                raw[k] = str(v).lower() in {"1", "true", "yes", "on"}
            else:
                raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_enabled and self.supabase_url and self.supabase_key)

    def require_supabase(self) -> None:
        if not self.supabase_url:
            raise ValueError("SUPABASE_URL is required")
        if not self.supabase_key:
            raise ValueError("SUPABASE_KEY is required")

    def log_summary(self) -> str:
        return (
            "remote=%s url=%s table=%s timeout=%s page_size=%s snapshot=%s key=%s"
            % (
                self.remote_configured,
                self.supabase_url or "unset",
                self.supabase_table,
                self.remote_timeout,
                self.default_page_size,
                self.snapshot_path or "builtin",
                mask_secret(self.supabase_key),
            )
        )

    def rest_url(self) -> str:
        base = (self.supabase_url or "").rstrip("/")
        if not base.endswith("/rest/v1"):
            base = f"{base}/rest/v1"
        return f"{base}/"
