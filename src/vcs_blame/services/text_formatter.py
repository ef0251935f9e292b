"""
Renders attribution records into display text.

Templates use the literal placeholders ``<author>``, ``<committer>``,
``<date>``, ``<committer-date>``, ``<summary>`` and ``<sha>``. All of them are
substituted in a single pass, so text coming from a commit (a summary that
contains ``<author>`` or ``%s``) is emitted verbatim.
"""

import logging
import re
import time
from dataclasses import replace
from functools import cached_property
from typing import Dict, Optional

from ..config import BlameConfig
from ..models import AttributionRecord
from ..utils.relative_time import format_relative_time

logger = logging.getLogger(__name__)

YOU = "You"
NOT_COMMITTED_SUMMARY = "Not Committed Yet"
EMPTY_SUMMARY = "(empty)"
TRUNCATION_MARKER = "…"
SHORT_SHA_LENGTH = 7
RELATIVE_TIME_ESCAPE = "%r"
DATE_ESCAPE_PATTERN = re.compile(r"%%|%r")

# Authors git reports for lines that do not come from a commit.
UNCOMMITTED_AUTHORS = frozenset({"External file (--contents)", NOT_COMMITTED_SUMMARY})

PLACEHOLDER_PATTERN = re.compile(r"<(author|committer|committer-date|date|summary|sha)>")


def truncate_summary(summary: str, max_length: int) -> str:
    """Cut ``summary`` to ``max_length`` characters, marker included.

    A ``max_length`` of 0 means no limit.
    """
    if max_length <= 0 or len(summary) <= max_length:
        return summary
    if max_length <= len(TRUNCATION_MARKER):
        return summary[:max_length]
    return summary[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


class BlameTextFormatter:
    """Formats records with the configured templates and date format.

    ``current_author`` is the local VCS identity; lines authored or committed
    by it are shown as "You".
    """

    def __init__(self, config: BlameConfig, current_author: Optional[str] = None):
        self.config = config
        self.current_author = current_author

    @cached_property
    def uses_relative_date(self) -> bool:
        """Whether the date format contains an unescaped %r (the config never changes)."""
        return any(
            match.group() == RELATIVE_TIME_ESCAPE
            for match in DATE_ESCAPE_PATTERN.finditer(self.config.date_format)
        )

    def format_date(self, timestamp: int, now: Optional[float] = None) -> str:
        """Render ``timestamp`` with the date format; "" when it is out of range."""
        try:
            local_time = time.localtime(timestamp)
        except (OverflowError, OSError, ValueError) as e:
            logger.debug(f"Cannot format timestamp {timestamp}: {e}")
            return ""

        date_format = self.config.date_format
        if self.uses_relative_date:
            phrase = format_relative_time(timestamp, now)
            # %% stays for strftime, so "%%r" is a literal "%r".
            date_format = DATE_ESCAPE_PATTERN.sub(
                lambda match: phrase if match.group() == RELATIVE_TIME_ESCAPE else match.group(),
                date_format,
            )
        try:
            return time.strftime(date_format, local_time)
        except ValueError as e:
            logger.debug(f"Invalid date format {date_format!r}: {e}")
            return ""

    def format_summary(self, summary: Optional[str]) -> str:
        if summary is None:
            return ""
        if summary == "":
            return EMPTY_SUMMARY
        return truncate_summary(summary, self.config.max_commit_summary_length)

    def format_record(
        self, record: AttributionRecord, template: str, now: Optional[float] = None
    ) -> str:
        """Substitute every placeholder of ``template`` from ``record``."""
        values: Dict[str, str] = {
            "author": record.author or "",
            "committer": record.committer or "",
            "date": (
                self.format_date(record.author_time, now)
                if record.author_time is not None
                else ""
            ),
            "committer-date": (
                self.format_date(record.committer_time, now)
                if record.committer_time is not None
                else ""
            ),
            "summary": self.format_summary(record.summary),
            "sha": record.commit_id[:SHORT_SHA_LENGTH] if record.commit_id else "",
        }
        return PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], template)

    @staticmethod
    def is_committed(record: Optional[AttributionRecord]) -> bool:
        """True when the record carries a real commit identity."""
        return (
            record is not None
            and bool(record.author)
            and record.author_time is not None
            and bool(record.committer)
            and record.committer_time is not None
            and record.author not in UNCOMMITTED_AUTHORS
        )

    def _as_you(self, name: Optional[str]) -> Optional[str]:
        if self.current_author and name == self.current_author:
            return YOU
        return name

    def render(
        self,
        record: Optional[AttributionRecord],
        has_records: bool = True,
        is_ignored: bool = False,
        now: Optional[float] = None,
    ) -> Optional[str]:
        """Blame text for a resolved record.

        Args:
            record: Record under the cursor, or None when no record covers it
            has_records: Whether the file has any blame records at all
            is_ignored: Whether the VCS ignores the file
            now: Current unix time (defaults to time.time())

        Returns:
            The rendered text, or None for an ignored file with no records
        """
        if record is not None and self.is_committed(record):
            shown = replace(
                record,
                author=self._as_you(record.author),
                committer=self._as_you(record.committer),
            )
            return self.format_record(shown, self.config.message_template, now)

        if not has_records and is_ignored:
            logger.debug("Suppressing blame text for an ignored file")
            return None

        current_time = int(now if now is not None else time.time())
        base = record if record is not None else AttributionRecord(start_line=0, end_line=0)
        uncommitted = replace(
            base,
            author=YOU,
            committer=YOU,
            summary=NOT_COMMITTED_SUMMARY,
            author_time=base.author_time if base.author_time is not None else current_time,
            committer_time=(
                base.committer_time if base.committer_time is not None else current_time
            ),
        )
        return self.format_record(uncommitted, self.config.message_when_not_committed, now)
