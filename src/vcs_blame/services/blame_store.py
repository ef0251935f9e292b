"""
Per-file cache of parsed blame records.

The store is an explicit map from absolute file path to FileBlameState plus
the set of paths whose blame is being reloaded. A reload never patches the
cached list: the new list is parsed completely and swapped in with one
assignment, so readers always see a complete snapshot.
"""

import logging
from typing import Dict, List, Optional, Set

from ..models import AttributionRecord, FileBlameState

logger = logging.getLogger(__name__)


class BlameStore:
    """Owns every FileBlameState and the loading guard."""

    def __init__(self) -> None:
        self._files: Dict[str, FileBlameState] = {}
        self._loading: Set[str] = set()

    def put(
        self,
        file_path: str,
        records: List[AttributionRecord],
        repo_root: Optional[str] = None,
    ) -> FileBlameState:
        """Replace the records of ``file_path``.

        Args:
            file_path: Absolute path of the blamed file
            records: Complete record list from one annotate run
            repo_root: Repository root; None keeps the one already known

        Returns:
            The state now cached for the file
        """
        previous = self._files.get(file_path)
        if repo_root is None:
            repo_root = previous.repo_root if previous is not None else ""

        state = FileBlameState(file_path=file_path, repo_root=repo_root, records=records)
        self._files[file_path] = state
        logger.debug(f"Stored {len(records)} blame records for {file_path}")
        return state

    def get(self, file_path: str) -> Optional[FileBlameState]:
        """Cached state, or None when the file was never loaded."""
        return self._files.get(file_path)

    def records(self, file_path: str) -> Optional[List[AttributionRecord]]:
        """Cached records; an empty list means the file has no blamed lines."""
        state = self._files.get(file_path)
        return state.records if state is not None else None

    def remove(self, file_path: str) -> None:
        """Forget one file, e.g. when it is closed."""
        self._files.pop(file_path, None)

    def clear(self) -> None:
        """Forget every file."""
        self._files.clear()

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._files

    def __len__(self) -> int:
        return len(self._files)

    # Loading guard

    def is_loading(self, file_path: str) -> bool:
        return file_path in self._loading

    def try_begin_loading(self, file_path: str) -> bool:
        """Mark ``file_path`` as loading.

        Returns:
            False when a load for the path is already in flight
        """
        if file_path in self._loading:
            return False
        self._loading.add(file_path)
        return True

    def finish_loading(self, file_path: str) -> None:
        self._loading.discard(file_path)
