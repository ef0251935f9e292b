"""
Parser for line-oriented blame/annotate output.

Understands the shape shared by ``git blame --porcelain`` and the templated
``jj file annotate`` output used by the jj backend:

    <commit-id> <orig-line> <final-line> <line-count>
    author <name>
    author-time <unix>
    committer <name>
    committer-time <unix>
    summary <first line of message>
    \t<content>

git only prints the metadata block the first time a commit appears, so
later ranges of the same commit copy it from the earlier record. jj repeats
it for every line and simply overwrites the copied values.
"""

import logging
import re
import time
from dataclasses import replace
from typing import Iterable, List, Optional

from ..models import AttributionRecord, is_uncommitted_id

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"^([A-Za-z0-9]+) ([0-9]+) ([0-9]+) ([0-9]+)")

_TEXT_FIELDS = {
    "author ": "author",
    "committer ": "committer",
    "summary ": "summary",
}
_TIME_FIELDS = {
    "author-time ": "author_time",
    "committer-time ": "committer_time",
}

# Porcelain keys whose values could otherwise look like a header,
# e.g. "summary 2 3 4 fixes".
_METADATA_KEYS = frozenset(
    {
        "author",
        "author-mail",
        "author-time",
        "author-tz",
        "committer",
        "committer-mail",
        "committer-time",
        "committer-tz",
        "summary",
        "previous",
        "filename",
        "boundary",
    }
)


def _parse_timestamp(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return int(time.time())


def _copy_commit_metadata(
    record: AttributionRecord, records: List[AttributionRecord]
) -> AttributionRecord:
    """Fill ``record`` from the first earlier record of the same commit."""
    for known in records:
        if known.commit_id == record.commit_id:
            return replace(
                record,
                author=known.author,
                committer=known.committer,
                author_time=known.author_time,
                committer_time=known.committer_time,
                summary=known.summary,
            )
    return record


def parse_header(line: str) -> Optional[AttributionRecord]:
    """Build the record opened by a header line, or None if it is not one."""
    match = HEADER_PATTERN.match(line)
    if match is None or match.group(1) in _METADATA_KEYS:
        return None

    commit_id, _orig_line, final_line, line_count = match.groups()
    start_line = int(final_line)
    return AttributionRecord(
        start_line=start_line,
        end_line=start_line + int(line_count) - 1,
        commit_id=commit_id,
    )


def parse_blame_output(
    lines: Iterable[str], records: Optional[List[AttributionRecord]] = None
) -> List[AttributionRecord]:
    """Convert raw annotate lines into attribution records.

    Args:
        lines: stdout lines of one annotate invocation
        records: Accumulator to append to (a new list when omitted)

    Returns:
        The accumulator, with one record per header in emission order
    """
    if records is None:
        records = []

    current: Optional[AttributionRecord] = None
    for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        header = parse_header(line)
        if header is not None:
            if not is_uncommitted_id(header.commit_id):
                header = _copy_commit_metadata(header, records)
            records.append(header)
            current = header
            continue

        if current is None:
            continue

        for prefix, attr in _TEXT_FIELDS.items():
            if line.startswith(prefix):
                setattr(current, attr, line[len(prefix):])
                break
        else:
            for prefix, attr in _TIME_FIELDS.items():
                if line.startswith(prefix):
                    setattr(current, attr, _parse_timestamp(line[len(prefix):]))
                    break

    logger.debug(f"Parsed {len(records)} blame records")
    return records
