"""Unit tests for logging utilities."""

import json
from pathlib import Path

import pytest

from diffscope.utils import create_cli_logger, create_logger, null_logger
from diffscope.utils._logging import _get_log_level, _log_level_from_string


class TestCreateLogger:
    def test_creates_log_directory_if_missing(self, tmp_path: Path) -> None:
        log_path = tmp_path / "logs" / "diffscope.log"

        logger = create_logger(level="info", log_file=str(log_path))
        logger.info("started")

        assert log_path.exists()

    def test_default_format_is_json(self, tmp_path: Path) -> None:
        log_path = tmp_path / "diffscope.log"

        logger = create_logger(level="info", log_file=str(log_path))
        logger.info("test_event", key="value")

        record = json.loads(log_path.read_text().splitlines()[0])
        assert record["event"] == "test_event"
        assert record["key"] == "value"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_text_format(self, tmp_path: Path) -> None:
        log_path = tmp_path / "diffscope.log"

        logger = create_logger(level="info", log_format="text", log_file=str(log_path))
        logger.info("test_event", key="value")

        content = log_path.read_text()
        assert "test_event" in content
        assert "key=value" in content

    def test_filters_below_level(self, tmp_path: Path) -> None:
        log_path = tmp_path / "diffscope.log"

        logger = create_logger(level="warning", log_file=str(log_path))
        logger.info("hidden")
        logger.warning("shown")

        content = log_path.read_text()
        assert "hidden" not in content
        assert "shown" in content

    def test_debug_env_overrides_level(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DIFFSCOPE_DEBUG", "1")
        log_path = tmp_path / "diffscope.log"

        logger = create_logger(level="error", log_file=str(log_path))
        logger.debug("verbose")

        assert "verbose" in log_path.read_text()

    def test_writes_to_stderr_without_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = create_logger(level="info")
        logger.info("to_stderr")

        assert "to_stderr" in capsys.readouterr().err


class TestCreateCliLogger:
    def test_binds_command(self, tmp_path: Path) -> None:
        log_path = tmp_path / "cli.log"

        logger = create_cli_logger(
            level="info", log_format="json", log_file=str(log_path), command="diff"
        )
        logger.info("ran")

        record = json.loads(log_path.read_text().splitlines()[0])
        assert record["command"] == "diff"


class TestLogLevels:
    def test_env_default_is_warning(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DIFFSCOPE_DEBUG", raising=False)
        monkeypatch.delenv("DIFFSCOPE_LOG_LEVEL", raising=False)

        assert _get_log_level() == 30

    def test_env_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DIFFSCOPE_DEBUG", raising=False)
        monkeypatch.setenv("DIFFSCOPE_LOG_LEVEL", "error")

        assert _get_log_level() == 40

    def test_unknown_level_falls_back_to_warning(self) -> None:
        assert _log_level_from_string("chatty") == 30


class TestNullLogger:
    def test_drops_everything(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = null_logger()
        logger.error("nothing", key="value")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
