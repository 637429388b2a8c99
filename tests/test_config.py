"""Tests for application configuration."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from dumpsplit.config import AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.output_dir == Path(tempfile.gettempdir())
        assert config.vector_store_name_prefix == "vector-store"
        assert config.poll_timeout_seconds == 600
        assert config.poll_initial_backoff_seconds == 1.0
        assert config.poll_max_backoff_seconds == 20.0

    def test_resolve_output_dir_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(output_dir=Path("/absolute/out"))
        assert config.resolve_output_dir(Path("/base")) == Path("/absolute/out")

    def test_resolve_output_dir_relative_no_base(self) -> None:
        """Should return relative path when no base_dir provided."""
        config = AppConfig(output_dir=Path("out"))
        assert config.resolve_output_dir() == Path("out")

    def test_resolve_output_dir_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(output_dir=Path("out"))
        assert config.resolve_output_dir(Path("/base")) == Path("/base/out")


class TestFromEnv:
    """Test AppConfig.from_env."""

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should pick up DUMPSPLIT_* variables."""
        monkeypatch.setenv("DUMPSPLIT_OUTPUT_DIR", "/data/out")
        monkeypatch.setenv("DUMPSPLIT_VECTOR_STORE_PREFIX", "faq")
        monkeypatch.setenv("DUMPSPLIT_POLL_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("DUMPSPLIT_DOWNLOAD_TIMEOUT_SECONDS", "12.5")

        config = AppConfig.from_env(dotenv=False)

        assert config.output_dir == Path("/data/out")
        assert config.vector_store_name_prefix == "faq"
        assert config.poll_timeout_seconds == 30.0
        assert config.download_timeout_seconds == 12.5

    def test_defaults_without_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Missing variables keep the defaults."""
        for name in (
            "DUMPSPLIT_OUTPUT_DIR",
            "DUMPSPLIT_VECTOR_STORE_PREFIX",
            "DUMPSPLIT_POLL_TIMEOUT_SECONDS",
            "DUMPSPLIT_DOWNLOAD_TIMEOUT_SECONDS",
        ):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env(dotenv=False)

        assert config == AppConfig()

    def test_loads_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should read variables from a .env file in the working directory."""
        monkeypatch.delenv("DUMPSPLIT_VECTOR_STORE_PREFIX", raising=False)
        (tmp_path / ".env").write_text("DUMPSPLIT_VECTOR_STORE_PREFIX=from-dotenv\n")
        monkeypatch.chdir(tmp_path)

        config = AppConfig.from_env()

        assert config.vector_store_name_prefix == "from-dotenv"
