"""Line and line-range lookups over cached blame records."""

from typing import List, Optional

from ..models import AttributionRecord
from .blame_store import BlameStore


def resolve(records: List[AttributionRecord], line: int) -> Optional[AttributionRecord]:
    """Return the record whose range contains ``line``."""
    for record in records:
        if record.contains(line):
            return record
    return None


def records_in_range(
    records: List[AttributionRecord], line1: int, line2: int
) -> List[AttributionRecord]:
    """Records intersecting ``[line1, line2]``, in stored order."""
    return [record for record in records if record.overlaps(line1, line2)]


def resolve_range(
    records: List[AttributionRecord], line1: int, line2: int
) -> Optional[AttributionRecord]:
    """Return the most recently authored record intersecting the range.

    Ties keep the first record encountered. A record without an author time
    loses against any record that has one.
    """
    latest: Optional[AttributionRecord] = None
    for record in records_in_range(records, line1, line2):
        if latest is None:
            latest = record
            continue
        if record.author_time is None:
            continue
        if latest.author_time is None or record.author_time > latest.author_time:
            latest = record
    return latest


def get_blame_info(
    store: BlameStore, file_path: Optional[str], line1: int, line2: Optional[int] = None
) -> Optional[AttributionRecord]:
    """Resolve a line, or a selection when ``line2`` differs from ``line1``.

    Returns None when the file has no loaded blame; callers load it and ask
    again rather than treating the line as unattributed.
    """
    if not file_path:
        return None
    records = store.records(file_path)
    if records is None:
        return None

    if line2 is not None and line1 != line2:
        low, high = min(line1, line2), max(line1, line2)
        return resolve_range(records, low, high)
    return resolve(records, line1)
