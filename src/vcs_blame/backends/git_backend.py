"""Git backend: ``git blame --porcelain`` plus plumbing lookups."""

import logging
from typing import List, Optional

from .vcs_backend import VcsBackend

logger = logging.getLogger(__name__)

# `git check-ignore` exits with 1 when the path is not ignored.
CHECK_IGNORE_NOT_IGNORED = 1


class GitBackend(VcsBackend):
    """Backend for git repositories."""

    name = "git"

    def annotate_command(self, file_path: str, use_stdin: bool) -> List[str]:
        # -b blanks boundary commits, -w ignores whitespace-only changes.
        command = ["git", "--no-pager", "blame", "-b", "-p", "-w"]
        if use_stdin:
            command.extend(["--contents", "-"])
        command.extend(["--", file_path])
        return command

    async def _first_line(self, args: List[str], file_path: Optional[str]) -> str:
        result = await self.runner.run(args, cwd=self.command_cwd(file_path))
        return result.first_line.strip()

    async def get_repo_root(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(["git", "rev-parse", "--show-toplevel"], file_path)

    async def get_remote_url(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(
            ["git", "config", "--get", "remote.origin.url"], file_path
        )

    async def get_latest_sha(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(["git", "rev-parse", "HEAD"], file_path)

    async def find_current_author(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(["git", "config", "user.name"], file_path)

    async def get_current_branch(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(["git", "branch", "--show-current"], file_path)

    async def check_is_ignored(self, file_path: str) -> bool:
        result = await self.runner.run(
            ["git", "check-ignore", file_path], cwd=self.command_cwd(file_path)
        )
        is_ignored = result.returncode != CHECK_IGNORE_NOT_IGNORED
        logger.debug(f"git check-ignore {file_path}: {is_ignored}")
        return is_ignored
