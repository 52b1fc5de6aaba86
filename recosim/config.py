"""Recosim settings: environment/.env driven, with XDG-located data files."""

import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def xdg_data_home() -> Path:
    """``$XDG_DATA_HOME``, or ``~/.local/share`` when unset or empty."""
    return Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseSettings):
    """Recosim configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="RECOSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Data locations
    data_dir: Path | None = Field(
        default=None,
        description="Override data directory (defaults to XDG_DATA_HOME/recosim)",
    )

    database_path: Path | None = Field(
        default=None,
        description="SQLite record store location (defaults to <data_dir>/recosim.db)",
    )

    # Feature vectorizer
    vector_dimensions: int = Field(
        default=128,
        ge=8,
        description="Length of every product feature vector",
    )

    vector_salt: str = Field(
        default="recosim-v1",
        min_length=1,
        description="Salt mixed into feature hashing; changing it re-buckets every feature",
    )

    # Recommendation knobs
    recent_interactions: int = Field(
        default=3,
        ge=1,
        description="Number of most recent interactions seeding personalized lookups",
    )

    default_top_n: int = Field(
        default=5,
        ge=1,
        description="Default number of recommendations returned",
    )

    # Segmentation
    segment_count: int = Field(
        default=4,
        ge=1,
        description="Number of k-means clusters for customer segmentation",
    )

    kmeans_max_iterations: int = Field(
        default=100,
        ge=1,
        description="Iteration cap for k-means; hitting it ends the run normally",
    )

    kmeans_seed: int = Field(
        default=0,
        description="Seed for k-means centroid sampling",
    )

    # Activity ledger
    audit_enabled: bool = Field(
        default=True,
        description="Record index rebuilds and segmentation runs in the activity ledger",
    )

    log_level: LogLevel = Field(
        default="WARNING",
        description="Root logging level used by the CLI",
    )

    _resolved_data_dir: Path | None = PrivateAttr(default=None)

    def get_data_dir(self) -> Path:
        """Resolve (and create) the data directory once per settings instance.

        An explicit ``data_dir`` is used as given. Otherwise the XDG location is
        tried first and a ``.recosim-data`` folder in the working directory is
        used when that location is not writable.
        """
        if self._resolved_data_dir is None:
            if self.data_dir is not None:
                self.data_dir.mkdir(parents=True, exist_ok=True)
                self._resolved_data_dir = self.data_dir
            else:
                self._resolved_data_dir = self._default_data_dir()
        return self._resolved_data_dir

    @staticmethod
    def _default_data_dir() -> Path:
        preferred = xdg_data_home() / "recosim"
        try:
            preferred.mkdir(parents=True, exist_ok=True)
            return preferred
        except PermissionError as exc:
            local = Path.cwd() / ".recosim-data"
            local.mkdir(parents=True, exist_ok=True)
            logger.warning(
                "Data directory %s is not writable (%s); using %s. Pass --data-dir to choose another.",
                preferred,
                exc,
                local,
            )
            return local

    def get_database_path(self) -> Path:
        """Get path to the SQLite record store."""
        if self.database_path is not None:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            return self.database_path
        return self.get_data_dir() / "recosim.db"

    def get_audit_path(self) -> Path:
        """Get path to the activity ledger file."""
        return self.get_data_dir() / "activity.jsonl"


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
