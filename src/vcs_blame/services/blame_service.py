"""
Blame service: the entry point editors and the CLI talk to.

Owns the blame store, the backend chosen from configuration, and the
context values discovered at startup (the local author). Every operation is
a coroutine; blame is loaded lazily on first use and looked up again once
the load finishes.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from ..backends.backend_factory import BackendFactory
from ..backends.vcs_backend import VcsBackend
from ..config import BlameConfig
from ..models import is_valid_sha
from ..utils.process_runner import AsyncProcessRunner, CommandRunner
from . import url_resolver
from .blame_store import BlameStore
from .query_engine import get_blame_info
from .text_formatter import BlameTextFormatter

logger = logging.getLogger(__name__)


@dataclass
class BlameContext:
    """Values looked up once per session."""

    current_author: str = ""


class BlameService:
    """Blame text, SHAs and URLs for lines of files under version control."""

    def __init__(
        self,
        config: BlameConfig,
        runner: Optional[CommandRunner] = None,
        store: Optional[BlameStore] = None,
    ):
        """
        Args:
            config: Loaded configuration
            runner: Command runner (defaults to an AsyncProcessRunner)
            store: Blame cache (defaults to a new, empty store)
        """
        self.config = config
        self.runner = runner or AsyncProcessRunner(timeout=config.command_timeout)
        self.store = store or BlameStore()
        self.backend: VcsBackend = BackendFactory.create(config, self.runner, self.store)
        self.context = BlameContext()
        self.formatter = BlameTextFormatter(config)
        self.enabled = config.enabled
        self.current_blame_text = ""

    async def initialize(self, file_path: Optional[str] = None) -> BlameContext:
        """Look up the local author and bind it to the formatter."""
        author = await self.backend.find_current_author(file_path)
        self.context = BlameContext(current_author=author)
        self.formatter = BlameTextFormatter(self.config, current_author=author or None)
        logger.debug(f"Current {self.backend.name} author: {author!r}")
        return self.context

    async def refresh(
        self,
        file_path: str,
        contents: Optional[str] = None,
        filetype: Optional[str] = None,
    ) -> bool:
        """Reload blame after the file changed; no-op while a load is running."""
        return await self.backend.load_blames(file_path, contents=contents, filetype=filetype)

    async def get_blame_text(
        self,
        file_path: str,
        line: int,
        line2: Optional[int] = None,
        contents: Optional[str] = None,
        filetype: Optional[str] = None,
    ) -> Optional[str]:
        """Blame text for a line (or the latest line of a selection).

        Returns:
            Rendered text, or None when blame is disabled, the file is not
            under version control, or the file is new and ignored
        """
        if not self.enabled:
            return None

        state = self.store.get(file_path)
        if state is None:
            await self.backend.load_blames(file_path, contents=contents, filetype=filetype)
            state = self.store.get(file_path)
            if state is None:
                return None

        if state.repo_root == "":
            return None

        record = get_blame_info(self.store, file_path, line, line2)
        has_records = len(state.records) > 0
        is_ignored = False
        if record is None and not has_records:
            is_ignored = await self.backend.check_is_ignored(file_path)

        blame_text = self.formatter.render(record, has_records=has_records, is_ignored=is_ignored)
        self.current_blame_text = blame_text or ""
        return blame_text

    async def get_sha(
        self, file_path: str, line1: int, line2: Optional[int] = None
    ) -> str:
        """SHA for a line or the most recently authored line of a selection."""
        record = get_blame_info(self.store, file_path, line1, line2)
        if record is None:
            await self.backend.load_blames(file_path)
            record = get_blame_info(self.store, file_path, line1, line2)
        return record.commit_id if record is not None else ""

    async def get_commit_url(
        self, file_path: str, line1: int, line2: Optional[int] = None
    ) -> Optional[str]:
        """Web URL of the commit behind a line, or None without a valid SHA."""
        sha = await self.get_sha(file_path, line1, line2)
        if not is_valid_sha(sha):
            logger.info(f"No commit for {file_path}:{line1}")
            return None
        remote_url = await self.backend.get_remote_url(file_path)
        return url_resolver.commit_url(sha, remote_url)

    async def get_file_url(
        self,
        file_path: str,
        sha: Optional[str] = None,
        line1: Optional[int] = None,
        line2: Optional[int] = None,
    ) -> str:
        """Web URL of a file at ``sha`` (or the current branch).

        Outside a repository the file path itself is returned so it can
        still be copied or opened.
        """
        repo_root = await self.backend.get_repo_root(file_path)
        if repo_root == "":
            return file_path

        relative_path = os.path.relpath(os.path.abspath(file_path), repo_root)
        relative_path = relative_path.replace(os.sep, "/")

        ref = sha if sha is not None else await self.backend.get_current_branch(file_path)
        remote_url = await self.backend.get_remote_url(file_path)
        return url_resolver.file_url(remote_url, ref, relative_path, line1, line2)

    async def get_file_url_for_selection(
        self,
        file_path: str,
        line1: Optional[int] = None,
        line2: Optional[int] = None,
    ) -> str:
        """File URL pinned to the blame commit or to the latest commit."""
        if self.config.use_blame_commit_file_urls and line1 is not None:
            sha = await self.get_sha(file_path, line1, line2)
        else:
            sha = await self.backend.get_latest_sha(file_path)
        return await self.get_file_url(file_path, sha or None, line1, line2)

    def file_closed(self, file_path: str) -> None:
        self.store.remove(file_path)

    def get_current_blame_text(self) -> str:
        return self.current_blame_text

    def is_blame_text_available(self) -> bool:
        return bool(self.current_blame_text)

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        """Stop showing blame and drop every cached file."""
        self.enabled = False
        self.store.clear()
        self.current_blame_text = ""

    def toggle(self) -> bool:
        if self.enabled:
            self.disable()
        else:
            self.enable()
        return self.enabled
