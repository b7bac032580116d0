"""Relocator configuration via pydantic-settings (.env + env vars)."""

import os
import sys
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_COPY_CHUNK, DEFAULT_MOVE_TIMEOUT, DUPLICATES_DIR_NAME


class RelocatorConfig(BaseSettings):
    """All relocator configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Destinations --
    move_enabled: bool = True
    rename_enabled: bool = True
    duplicates_dir_name: str = DUPLICATES_DIR_NAME

    # -- Cleanup --
    remove_empty_dirs: bool = True
    reap_root: Path | None = None  # None = mount point of the source

    # -- Scheduling --
    max_workers: int = Field(default=0, ge=0)  # 0 = auto (CPU-based)
    move_timeout: float = Field(default=DEFAULT_MOVE_TIMEOUT, gt=0)

    # -- Transfer --
    copy_chunk_size: int = Field(default=DEFAULT_COPY_CHUNK, gt=0)
    touch_on_success: bool = True
    check_free_space: bool = True

    # -- Behavior --
    dry_run: bool = False
    verbose: bool = False
    log_level: str = "INFO"
    log_dir: Path | None = None

    def calculate_max_workers(self) -> int:
        """Worker pool size: configured value, or one per core capped at 8."""
        if self.max_workers > 0:
            return self.max_workers
        return max(1, min(8, os.cpu_count() or 1))

    def setup_logging(self) -> None:
        """Configure loguru for the relocator."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[component]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("component", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "relocator.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
