"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from dumpsplit.cli import _setup_logging, app


runner = CliRunner()

DUMP = (
    "INSERT INTO qa (cat_id, question, description) VALUES "
    "('3', 'What?', 'Because.'), ('4.1', 'Who?', 'Me.'), ('3.2', 'When?', 'Now.');\n"
)


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("dumpsplit.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("dumpsplit.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestSplitCommand:
    """Tests for the split command."""

    def test_split_no_sql_found(self, tmp_path: Path) -> None:
        """Shows warning when no SQL files are found."""
        empty_dir = tmp_path / "empty"
        empty_dir.mkdir()

        result = runner.invoke(app, ["split", str(empty_dir), "--out", str(tmp_path / "out")])
        assert result.exit_code == 0
        assert "No SQL files found" in result.stdout

    def test_split_writes_category_files(self, tmp_path: Path) -> None:
        """Writes one JSON file per category."""
        dump = tmp_path / "faq.sql"
        dump.write_text(DUMP, encoding="utf-8")
        out = tmp_path / "out"

        result = runner.invoke(app, ["split", str(dump), "--out", str(out)])

        assert result.exit_code == 0
        categories_dir = out / "faq_categories"
        assert sorted(p.name for p in categories_dir.iterdir()) == ["3.json", "4.json"]

    def test_split_utf16_file(self, tmp_path: Path) -> None:
        """UTF-16 dumps are decoded transparently."""
        dump = tmp_path / "faq.sql"
        dump.write_bytes(b"\xff\xfe" + DUMP.encode("utf-16-le"))
        out = tmp_path / "out"

        result = runner.invoke(app, ["split", str(tmp_path), "--out", str(out), "-v"])

        assert result.exit_code == 0
        assert (out / "faq_categories" / "4.json").exists()

    def test_split_without_categories_fails(self, tmp_path: Path) -> None:
        """A dump with no categories exits non-zero."""
        dump = tmp_path / "empty.sql"
        dump.write_text("CREATE TABLE qa (id int);")

        result = runner.invoke(app, ["split", str(dump), "--out", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "No categories found" in result.stdout


class TestInspectCommand:
    """Tests for the inspect command."""

    def test_inspect_prints_stats(self, tmp_path: Path) -> None:
        dump = tmp_path / "faq.sql"
        dump.write_text(DUMP, encoding="utf-8")

        result = runner.invoke(app, ["inspect", str(dump)])

        assert result.exit_code == 0
        assert "Encoding: utf-8" in result.stdout
        assert "rows: 3" in result.stdout
        assert "categories: 2" in result.stdout
        assert not (tmp_path / "faq_categories").exists()

    def test_inspect_no_categories(self, tmp_path: Path) -> None:
        dump = tmp_path / "bad.sql"
        dump.write_text("SELECT 1;")

        result = runner.invoke(app, ["inspect", str(dump)])

        assert result.exit_code == 1


class TestSyncCommand:
    """Tests for the sync command."""

    def test_sync_success(self, tmp_path: Path) -> None:
        """Builds a pipeline request from options."""
        output = {"result": {"status": "completed"}, "meta": {}}
        with patch("dumpsplit.cli.run_pipeline", return_value=output) as mock_run:
            result = runner.invoke(
                app,
                [
                    "sync",
                    "--url",
                    "https://host/faq.sql",
                    "--token",
                    "sk-test",
                    "--vector-store-id",
                    "vs_1",
                    "--out",
                    str(tmp_path),
                    "--keep",
                ],
            )

        assert result.exit_code == 0
        request = mock_run.call_args.args[0]
        assert request["payload"] == [{"fileUrl": "https://host/faq.sql"}]
        assert request["gptToken"] == "sk-test"
        assert request["existingVectorStoreId"] == "vs_1"
        assert request["options"]["outputDir"] == str(tmp_path)
        assert request["options"]["keepLocalFile"] is True
        assert "completed" in result.stdout

    def test_sync_failure_exit_code(self, tmp_path: Path) -> None:
        output = {
            "result": {"status": "failed", "error": {"message": "boom", "step": "download"}},
            "meta": {},
        }
        with patch("dumpsplit.cli.run_pipeline", return_value=output):
            result = runner.invoke(
                app, ["sync", "--url", "https://host/x.sql", "--token", "sk", "--out", str(tmp_path)]
            )

        assert result.exit_code == 1
        assert "boom" in result.stdout
