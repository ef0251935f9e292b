"""Jujutsu (jj) backend.

``jj file annotate`` has no porcelain mode, so it is given a template that
prints, for every line, a header shaped like git's
(``<commit_id> 99999 <line> 1``) followed by the same metadata keys git uses.
The blame parser then handles both backends alike.
"""

import logging
from typing import List, Optional

from .vcs_backend import VcsBackend

logger = logging.getLogger(__name__)

JJ = ["jj", "--ignore-working-copy"]

# TOML string handed to --config; \" \n and \t are TOML escapes.
ANNOTATE_TEMPLATE = (
    r'"separate(\"\n\", '
    r"separate(\" \", commit.commit_id(), 99999, line_number, 1), "
    r"\"author \" ++ commit.author().name(), "
    r"\"author-time \" ++ commit.author().timestamp().format(\"%s\"), "
    r"\"committer \" ++ commit.committer().name(), "
    r"\"committer-time \" ++ commit.committer().timestamp().format(\"%s\"), "
    r"\"summary \" ++ commit.description().first_line(), "
    r'\"\t\" ++ content) ++ \"\n\""'
)

LATEST_BOOKMARK_REVSET = "latest(ancestors(@) & bookmarks())"
REMOTE_PREFIX = "origin "


class JjBackend(VcsBackend):
    """Backend for Jujutsu repositories."""

    name = "jj"
    supports_stdin_contents = False

    def annotate_command(self, file_path: str, use_stdin: bool) -> List[str]:
        return JJ + [
            "--config",
            "ui.color=never",
            "file",
            "annotate",
            "--config",
            f"templates.file_annotate={ANNOTATE_TEMPLATE}",
            file_path,
        ]

    async def _first_line(self, args: List[str], file_path: Optional[str]) -> str:
        result = await self.runner.run(args, cwd=self.command_cwd(file_path))
        return result.first_line.strip()

    async def get_repo_root(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(JJ + ["root"], file_path)

    async def get_remote_url(self, file_path: Optional[str] = None) -> str:
        result = await self.runner.run(
            JJ + ["git", "remote", "list"], cwd=self.command_cwd(file_path)
        )
        for line in result.lines:
            if line.startswith(REMOTE_PREFIX):
                return line[len(REMOTE_PREFIX):].strip()
        return ""

    async def get_latest_sha(self, file_path: Optional[str] = None) -> str:
        # @ is the working-copy commit; its parent is the last real change.
        return await self._first_line(
            JJ + ["log", "-T", "commit_id", "--no-graph", "-r", "@-"], file_path
        )

    async def find_current_author(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(JJ + ["config", "get", "user.name"], file_path)

    async def get_current_branch(self, file_path: Optional[str] = None) -> str:
        return await self._first_line(
            JJ
            + [
                "--config",
                "ui.color=never",
                "log",
                "-r",
                LATEST_BOOKMARK_REVSET,
                "--no-graph",
                "-T",
                'self.local_bookmarks().join("\\n")',
            ],
            file_path,
        )

    async def check_is_ignored(self, file_path: str) -> bool:
        # jj has no check-ignore; new files are treated as ignored so no
        # "not committed" text is shown for them.
        return True
