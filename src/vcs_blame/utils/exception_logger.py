"""Centralized exception logger for VCS Blame.

Records failures that are deliberately kept away from the user (a missing
VCS executable, a command that could not be spawned) with enough context to
debug them later:
- Timestamp and process ID-based log files
- Complete stack traces
- Command context (argv, cwd, return code)
"""

import json
import os
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any


class ExceptionLogger:
    """Centralized exception logging facility.

    Logs exceptions with full context to a timestamped file under
    ``<project>/.vcs-blame/``.
    """

    _instance: Optional["ExceptionLogger"] = None
    log_file_path: Optional[Path] = None

    def __init__(self, log_file_path: Path):
        """Initialize exception logger with specific log file path.

        Args:
            log_file_path: Path to the log file for writing exceptions
        """
        self.log_file_path = log_file_path

    @classmethod
    def initialize(cls, project_root: Path) -> "ExceptionLogger":
        """Initialize the global exception logger (idempotent singleton).

        The log file itself is created on the first logged exception so a
        clean run leaves nothing behind.

        WARNING: This is a singleton. Tests should reset ``cls._instance = None``
        if they need fresh instances.

        Args:
            project_root: Directory that receives the ``.vcs-blame`` log folder

        Returns:
            Initialized ExceptionLogger instance (singleton)
        """
        if cls._instance is not None:
            return cls._instance

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        pid = os.getpid()
        log_file_path = project_root / ".vcs-blame" / f"error_{timestamp}_{pid}.log"

        cls._instance = cls(log_file_path)
        return cls._instance

    @classmethod
    def get_instance(cls) -> Optional["ExceptionLogger"]:
        """Get the current exception logger instance, or None."""
        return cls._instance

    def log_exception(
        self,
        exception: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log an exception with full context.

        Args:
            exception: The exception to log
            context: Additional context data to include in log (optional)
        """
        if not self.log_file_path:
            return

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "exception_type": type(exception).__name__,
            "exception_message": str(exception),
            "stack_trace": "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            ),
            "context": context or {},
        }

        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_file_path, "a") as f:
            f.write(json.dumps(log_entry, indent=2))
            f.write("\n---\n")
