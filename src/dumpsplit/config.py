"""Application configuration defaults."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DEFAULT_VECTOR_STORE_PREFIX = "vector-store"


def _get_default_output_dir() -> Path:
    return Path(tempfile.gettempdir())


@dataclass(slots=True)
class AppConfig:
    output_dir: Path | None = None
    vector_store_name_prefix: str = DEFAULT_VECTOR_STORE_PREFIX
    download_timeout_seconds: float = 300.0
    poll_timeout_seconds: float = 10 * 60
    poll_initial_backoff_seconds: float = 1.0
    poll_max_backoff_seconds: float = 20.0

    def __post_init__(self) -> None:
        if self.output_dir is None:
            self.output_dir = _get_default_output_dir()

    def resolve_output_dir(self, base_dir: Path | None = None) -> Path:
        if self.output_dir is None:
            self.output_dir = _get_default_output_dir()
        if Path(self.output_dir).is_absolute() or base_dir is None:
            return Path(self.output_dir)
        return base_dir / self.output_dir

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "AppConfig":
        """Build a config from ``DUMPSPLIT_*`` environment variables."""
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        config = cls()
        output_dir = os.environ.get("DUMPSPLIT_OUTPUT_DIR")
        if output_dir:
            config.output_dir = Path(output_dir)
        prefix = os.environ.get("DUMPSPLIT_VECTOR_STORE_PREFIX")
        if prefix:
            config.vector_store_name_prefix = prefix
        poll_timeout = os.environ.get("DUMPSPLIT_POLL_TIMEOUT_SECONDS")
        if poll_timeout:
            config.poll_timeout_seconds = float(poll_timeout)
        download_timeout = os.environ.get("DUMPSPLIT_DOWNLOAD_TIMEOUT_SECONDS")
        if download_timeout:
            config.download_timeout_seconds = float(download_timeout)
        return config
