"""Unit tests for ExceptionLogger."""

import json
from pathlib import Path

import pytest

from vcs_blame.utils.exception_logger import ExceptionLogger


@pytest.fixture(autouse=True)
def reset_singleton():
    ExceptionLogger._instance = None
    yield
    ExceptionLogger._instance = None


class TestExceptionLogger:
    """Singleton setup and log entries."""

    def test_initialize_is_idempotent(self, tmp_path: Path):
        first = ExceptionLogger.initialize(tmp_path)
        second = ExceptionLogger.initialize(tmp_path / "elsewhere")

        assert first is second
        assert ExceptionLogger.get_instance() is first

    def test_log_file_created_lazily(self, tmp_path: Path):
        exception_logger = ExceptionLogger.initialize(tmp_path)

        assert exception_logger.log_file_path.parent == tmp_path / ".vcs-blame"
        assert not exception_logger.log_file_path.exists()

    def test_entries_include_context(self, tmp_path: Path):
        exception_logger = ExceptionLogger.initialize(tmp_path)

        try:
            raise FileNotFoundError("git")
        except FileNotFoundError as e:
            exception_logger.log_exception(e, context={"command": "git rev-parse HEAD"})
        exception_logger.log_exception(TimeoutError("slow"))

        entries = exception_logger.log_file_path.read_text().split("\n---\n")
        first = json.loads(entries[0])
        assert first["exception_type"] == "FileNotFoundError"
        assert first["context"] == {"command": "git rev-parse HEAD"}
        assert "raise FileNotFoundError" in first["stack_trace"]
        assert json.loads(entries[1])["exception_type"] == "TimeoutError"
