"""Abstract base class for version-control backends.

Defines the capability set every backend offers to the blame service:
loading blame for a file, and looking up the repository root, the origin
remote, the latest commit, the current branch, the local author and whether
a file is ignored. Concrete backends only describe their commands and how to
read the answers; running the annotate command, guarding against duplicate
loads and storing the parsed result is shared here.
"""

import inspect
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Union

from ..config import BlameConfig
from ..services.blame_parser import parse_blame_output
from ..services.blame_store import BlameStore
from ..utils.process_runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

LoadCallback = Callable[[], Union[None, Awaitable[Any]]]


class VcsBackend(ABC):
    """Abstract interface for version-control backends.

    Implementations:
    - GitBackend: ``git blame --porcelain`` and git plumbing commands
    - JjBackend: Jujutsu ``file annotate`` with a porcelain-like template
    """

    name: str = ""
    # Whether the annotate command can blame unsaved text passed on stdin.
    supports_stdin_contents: bool = True

    def __init__(self, config: BlameConfig, runner: CommandRunner, store: BlameStore):
        """Initialize the backend.

        Args:
            config: Loaded configuration
            runner: Runner used for every external command
            store: Cache that receives parsed blame records
        """
        self.config = config
        self.runner = runner
        self.store = store

    @staticmethod
    def command_cwd(file_path: Optional[str]) -> Optional[Path]:
        """Directory commands about a file run in."""
        if not file_path:
            return None
        return Path(os.path.dirname(os.path.abspath(file_path)))

    @abstractmethod
    def annotate_command(self, file_path: str, use_stdin: bool) -> List[str]:
        """Command printing blame for ``file_path``.

        Args:
            file_path: Absolute path of the file
            use_stdin: Blame the text given on stdin instead of the saved file

        Returns:
            Program and arguments
        """
        pass

    @abstractmethod
    async def get_repo_root(self, file_path: Optional[str] = None) -> str:
        """Root of the repository containing ``file_path``.

        Returns:
            Absolute path, or empty string when not in a repository
        """
        pass

    @abstractmethod
    async def get_remote_url(self, file_path: Optional[str] = None) -> str:
        """URL of the ``origin`` remote, or empty string."""
        pass

    @abstractmethod
    async def get_latest_sha(self, file_path: Optional[str] = None) -> str:
        """Identifier of the most recent commit on the current line of history."""
        pass

    @abstractmethod
    async def find_current_author(self, file_path: Optional[str] = None) -> str:
        """Configured local user name, or empty string."""
        pass

    @abstractmethod
    async def get_current_branch(self, file_path: Optional[str] = None) -> str:
        """Current branch (or bookmark) name, or empty string."""
        pass

    @abstractmethod
    async def check_is_ignored(self, file_path: str) -> bool:
        """Whether the VCS ignores ``file_path``."""
        pass

    def should_skip(
        self, file_path: Optional[str], contents: Optional[str], filetype: Optional[str]
    ) -> bool:
        """Buffers that are never blamed: unnamed, empty, or an ignored type."""
        if not file_path:
            return True
        if contents is not None and contents == "":
            return True
        if filetype and filetype in self.config.ignored_filetypes:
            logger.debug(f"Not blaming {file_path}: filetype {filetype} is ignored")
            return True
        return False

    async def run_annotate(self, file_path: str, contents: Optional[str]) -> CommandResult:
        if not self.supports_stdin_contents:
            contents = None
        command = self.annotate_command(file_path, use_stdin=contents is not None)
        return await self.runner.run(
            command, cwd=self.command_cwd(file_path), input_text=contents
        )

    async def load_blames(
        self,
        file_path: Optional[str],
        contents: Optional[str] = None,
        filetype: Optional[str] = None,
        callback: Optional[LoadCallback] = None,
    ) -> bool:
        """Run the annotate command and replace the file's cached blame.

        A call for a path that is already loading returns immediately without
        running a second command or invoking ``callback``.

        Args:
            file_path: Absolute path of the file
            contents: Current (possibly unsaved) text of the file
            filetype: Editor file type, checked against ``ignored_filetypes``
            callback: Invoked after the new blame is stored

        Returns:
            True when blame was loaded and stored
        """
        if file_path is None or self.should_skip(file_path, contents, filetype):
            return False

        if not self.store.try_begin_loading(file_path):
            logger.debug(f"Blame for {file_path} is already loading")
            return False

        try:
            repo_root = await self.get_repo_root(file_path)
            if repo_root == "":
                logger.debug(f"{file_path} is not in a {self.name} repository")
                return False

            result = await self.run_annotate(file_path, contents)
            records = parse_blame_output(result.lines)
            self.store.put(file_path, records, repo_root=repo_root)
        finally:
            self.store.finish_loading(file_path)

        if callback is not None:
            outcome = callback()
            if inspect.isawaitable(outcome):
                await outcome
        return True
