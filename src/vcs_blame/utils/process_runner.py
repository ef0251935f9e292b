"""
Asynchronous command runner used by the VCS backends.

Commands are spawned with asyncio so the event loop is never blocked while a
blame is computed. The runner reports stdout as a list of lines plus the exit
code; stderr is discarded. Failures to spawn (missing executable, vanished
working directory) and timeouts are logged and reported as an empty result,
never raised.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .exception_logger import ExceptionLogger

logger = logging.getLogger(__name__)

SPAWN_FAILED_RETURNCODE = 127
TIMEOUT_RETURNCODE = -9


@dataclass
class CommandResult:
    """Output of one external command."""

    lines: List[str] = field(default_factory=list)
    returncode: int = 0

    @property
    def first_line(self) -> str:
        """First stdout line, or empty string when nothing was printed."""
        return self.lines[0] if self.lines else ""


class CommandRunner(ABC):
    """Runs an external command and delivers its stdout lines and exit code."""

    @abstractmethod
    async def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        input_text: Optional[str] = None,
    ) -> CommandResult:
        """Run ``args`` and wait for it to exit.

        Args:
            args: Program and arguments (no shell interpretation)
            cwd: Working directory for the command
            input_text: Text written to the command's stdin, if any

        Returns:
            CommandResult with stdout split into lines
        """
        pass


def get_command_environment(args: Sequence[str], cwd: Optional[Path]) -> Dict[str, str]:
    """
    Get environment variables for a VCS command.

    For git, marks the working directory as a safe.directory so blame still
    works when the repository owner differs from the current user (sudo,
    containers). Existing GIT_CONFIG_* entries are shifted to keep them.

    Args:
        args: Command about to be run
        cwd: Working directory of the command

    Returns:
        Dictionary of environment variables
    """
    env = os.environ.copy()
    if not args or args[0] != "git" or cwd is None:
        return env

    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(Path(cwd).resolve())

    config_count = 1
    for key in os.environ:
        if key.startswith("GIT_CONFIG_KEY_"):
            idx = key.replace("GIT_CONFIG_KEY_", "")
            if idx.isdigit():
                new_idx = int(idx) + 1
                env[f"GIT_CONFIG_KEY_{new_idx}"] = os.environ[key]
                if f"GIT_CONFIG_VALUE_{idx}" in os.environ:
                    env[f"GIT_CONFIG_VALUE_{new_idx}"] = os.environ[
                        f"GIT_CONFIG_VALUE_{idx}"
                    ]
                config_count = max(config_count, new_idx + 1)

    env["GIT_CONFIG_COUNT"] = str(config_count)
    return env


def split_output(text: str) -> List[str]:
    """Split command output on newlines only.

    ``str.splitlines`` would also split on form feeds and unicode separators
    that can appear inside blamed file content.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class AsyncProcessRunner(CommandRunner):
    """CommandRunner backed by ``asyncio.create_subprocess_exec``."""

    def __init__(self, timeout: Optional[float] = 30.0):
        """
        Args:
            timeout: Seconds to wait before killing the command (None = no limit)
        """
        self.timeout = timeout

    async def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        input_text: Optional[str] = None,
    ) -> CommandResult:
        logger.debug(f"Running {' '.join(args)} in {cwd}")
        env = get_command_environment(args, cwd)

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd) if cwd is not None else None,
                stdin=(
                    asyncio.subprocess.PIPE
                    if input_text is not None
                    else asyncio.subprocess.DEVNULL
                ),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                env=env,
            )
        except OSError as e:
            logger.warning(f"Could not run {args[0]}: {e}")
            _log_command_failure(e, args, cwd)
            return CommandResult(lines=[], returncode=SPAWN_FAILED_RETURNCODE)

        input_bytes = input_text.encode("utf-8") if input_text is not None else None
        try:
            stdout, _ = await asyncio.wait_for(
                process.communicate(input_bytes), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            logger.warning(f"Command timed out after {self.timeout}s: {' '.join(args)}")
            _log_command_failure(e, args, cwd, timeout=self.timeout)
            return CommandResult(lines=[], returncode=TIMEOUT_RETURNCODE)

        lines = split_output(stdout.decode("utf-8", errors="replace"))
        returncode = process.returncode if process.returncode is not None else 0
        logger.debug(f"{args[0]} exited with {returncode}, {len(lines)} lines")
        return CommandResult(lines=lines, returncode=returncode)


def _log_command_failure(
    exception: BaseException,
    args: Sequence[str],
    cwd: Optional[Path],
    timeout: Optional[float] = None,
) -> None:
    """Send a spawn failure or timeout to the ExceptionLogger, if initialized."""
    exception_logger = ExceptionLogger.get_instance()
    if exception_logger:
        context = {
            "command": " ".join(args),
            "cwd": str(cwd),
        }
        if timeout is not None:
            context["timeout"] = timeout
        exception_logger.log_exception(exception, context=context)
