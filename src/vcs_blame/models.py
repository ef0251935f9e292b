"""Attribution data model shared by the parser, store and formatter."""

import re
from dataclasses import dataclass, field
from typing import List, Optional

EMPTY_SHA = "0" * 40

_ALL_ZEROS = re.compile(r"^0+$")


def is_uncommitted_id(commit_id: Optional[str]) -> bool:
    """True for the all-zero identifier backends emit for working changes."""
    return bool(commit_id) and _ALL_ZEROS.match(commit_id) is not None


def is_valid_sha(sha: Optional[str]) -> bool:
    """True when ``sha`` names a real commit."""
    return bool(sha) and not is_uncommitted_id(sha)


@dataclass
class AttributionRecord:
    """One contiguous line range attributed to one commit.

    Lines are 1-based and inclusive. Metadata fields stay None until the
    backend reports them; a record without them renders as uncommitted.
    """

    start_line: int
    end_line: int
    commit_id: str = ""
    author: Optional[str] = None
    committer: Optional[str] = None
    author_time: Optional[int] = None
    committer_time: Optional[int] = None
    summary: Optional[str] = None

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    def overlaps(self, line1: int, line2: int) -> bool:
        """True unless the record lies entirely before line1 or after line2."""
        entirely_before = self.start_line < line1 and self.end_line < line1
        entirely_after = self.start_line > line2 and self.end_line > line2
        return not (entirely_before or entirely_after)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class FileBlameState:
    """Parsed blame for one file.

    ``repo_root`` is the empty string when the file is not under version
    control.
    """

    file_path: str
    repo_root: str = ""
    records: List[AttributionRecord] = field(default_factory=list)
