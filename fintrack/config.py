"""Runtime configuration for the finance tracker, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

STORAGE_BACKENDS = ("sql", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Config:
    """Application configuration."""

    storage: str = "sql"
    database_url: str = "sqlite:///fintrack.db"
    data_dir: Path = Path("data")
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    url_prefix: str = ""

    def __post_init__(self) -> None:
        self.storage = self.storage.strip().lower()
        if self.storage not in STORAGE_BACKENDS:
            raise ValueError(
                f"storage must be one of: {', '.join(STORAGE_BACKENDS)} (got {self.storage!r})"
            )
        self.log_level = self.log_level.strip().upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        self.url_prefix = self.url_prefix.rstrip("/")
        if self.url_prefix and not self.url_prefix.startswith("/"):
            self.url_prefix = "/" + self.url_prefix

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a Config from ``FINTRACK_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        log_dir = env.get("FINTRACK_LOG_DIR")
        return cls(
            storage=env.get("FINTRACK_STORAGE", "sql"),
            database_url=env.get("FINTRACK_DATABASE_URL", "sqlite:///fintrack.db"),
            data_dir=Path(env.get("FINTRACK_DATA_DIR", "data")),
            log_level=env.get("FINTRACK_LOG_LEVEL", "INFO"),
            log_dir=Path(log_dir) if log_dir else None,
            cors_origins=_split_origins(env.get("FINTRACK_CORS_ORIGINS", "*")) or ["*"],
            url_prefix=env.get("FINTRACK_URL_PREFIX", ""),
        )
