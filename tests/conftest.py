"""
Shared pytest fixtures for VCS Blame tests.

Provides a scripted command runner so backends and the blame service can be
exercised without git or jj installed, plus sample annotate output.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from vcs_blame.config import BlameConfig
from vcs_blame.services.blame_store import BlameStore
from vcs_blame.utils.process_runner import CommandResult, CommandRunner

SHA_INITIAL = "3f786850e387550fdab836ed7e6dc881de23001b"
SHA_FEATURE = "89e6c98d92887913cadf06b2adb97f26cde4849b"
SHA_UNCOMMITTED = "0" * 40


@dataclass
class FakeCall:
    args: List[str]
    cwd: Optional[Path]
    input_text: Optional[str]


class FakeCommandRunner(CommandRunner):
    """CommandRunner that answers from a table instead of spawning processes.

    A response is registered under a tuple of tokens; a command matches when
    every token appears in its argv. The most specific match (most tokens)
    wins. Unmatched commands print nothing and exit with 1.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[FakeCall] = []
        self._responses: Dict[Tuple[str, ...], CommandResult] = {}

    def respond(
        self, tokens: Sequence[str], lines: Optional[List[str]] = None, returncode: int = 0
    ) -> None:
        self._responses[tuple(tokens)] = CommandResult(
            lines=list(lines or []), returncode=returncode
        )

    def calls_with(self, *tokens: str) -> List[FakeCall]:
        return [call for call in self.calls if all(t in call.args for t in tokens)]

    async def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        input_text: Optional[str] = None,
    ) -> CommandResult:
        self.calls.append(FakeCall(list(args), cwd, input_text))
        if self.delay:
            await asyncio.sleep(self.delay)

        best: Optional[Tuple[str, ...]] = None
        for tokens in self._responses:
            if all(token in args for token in tokens):
                if best is None or len(tokens) > len(best):
                    best = tokens
        if best is None:
            return CommandResult(lines=[], returncode=1)
        return self._responses[best]


@pytest.fixture
def porcelain_lines() -> List[str]:
    """``git blame --porcelain`` output for a five line file.

    Lines 1-2 and 4 come from the initial commit (metadata printed once),
    line 3 from a feature commit, line 5 is not committed.
    """
    return [
        f"{SHA_INITIAL} 1 1 2",
        "author Alice",
        "author-mail <alice@example.com>",
        "author-time 1700000000",
        "author-tz +0000",
        "committer Alice",
        "committer-mail <alice@example.com>",
        "committer-time 1700000100",
        "committer-tz +0000",
        "summary Initial commit",
        "boundary",
        "filename app.py",
        "\tdef main():",
        f"{SHA_INITIAL} 2 2",
        "\t    run()",
        f"{SHA_FEATURE} 3 3 1",
        "author Bob",
        "author-mail <bob@example.com>",
        "author-time 1700500000",
        "author-tz +0100",
        "committer Bob",
        "committer-mail <bob@example.com>",
        "committer-time 1700500000",
        "committer-tz +0100",
        "summary Add feature flag",
        f"previous {SHA_INITIAL} app.py",
        "filename app.py",
        "\t    flag = True",
        f"{SHA_INITIAL} 3 4 1",
        "filename app.py",
        "\t    return 0",
        f"{SHA_UNCOMMITTED} 5 5 1",
        "author Not Committed Yet",
        "author-mail <not.committed.yet>",
        "author-time 1700900000",
        "author-tz +0000",
        "committer Not Committed Yet",
        "committer-mail <not.committed.yet>",
        "committer-time 1700900000",
        "committer-tz +0000",
        "summary Version of app.py from app.py",
        "previous 0000000000000000000000000000000000000000 app.py",
        "filename app.py",
        "\t# todo",
    ]


@pytest.fixture
def jj_annotate_lines() -> List[str]:
    """Templated ``jj file annotate`` output for a three line file."""
    lines: List[str] = []
    rows = [
        (SHA_INITIAL, 1, "Alice", 1700000000, "Initial commit", "def main():"),
        (SHA_INITIAL, 2, "Alice", 1700000000, "Initial commit", "    run()"),
        (SHA_FEATURE, 3, "Bob", 1700500000, "", "    flag = True"),
    ]
    for sha, line, author, timestamp, summary, content in rows:
        lines.extend(
            [
                f"{sha} 99999 {line} 1",
                f"author {author}",
                f"author-time {timestamp}",
                f"committer {author}",
                f"committer-time {timestamp}",
                f"summary {summary}",
                f"\t{content}",
            ]
        )
    return lines


@pytest.fixture
def config() -> BlameConfig:
    return BlameConfig()


@pytest.fixture
def store() -> BlameStore:
    return BlameStore()


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def repo_file(tmp_path: Path) -> Path:
    """A file inside a fake repository root at ``tmp_path``."""
    source_dir = tmp_path / "src"
    source_dir.mkdir()
    file_path = source_dir / "app.py"
    file_path.write_text("def main():\n    run()\n    flag = True\n    return 0\n# todo\n")
    return file_path


@pytest.fixture
def git_runner(fake_runner: FakeCommandRunner, porcelain_lines, tmp_path: Path) -> FakeCommandRunner:
    """Runner scripted as a git repository at ``tmp_path``."""
    fake_runner.respond(["git", "rev-parse", "--show-toplevel"], [str(tmp_path)])
    fake_runner.respond(["git", "blame"], porcelain_lines)
    fake_runner.respond(["git", "config", "user.name"], ["Alice"])
    fake_runner.respond(
        ["git", "config", "--get", "remote.origin.url"], ["git@github.com:acme/widgets.git"]
    )
    fake_runner.respond(["git", "rev-parse", "HEAD"], [SHA_FEATURE])
    fake_runner.respond(["git", "branch", "--show-current"], ["main"])
    fake_runner.respond(["git", "check-ignore"], [], returncode=1)
    return fake_runner
