"""Factory for creating version-control backends."""

import logging
from typing import Dict, Type

from ..config import BlameConfig
from ..services.blame_store import BlameStore
from ..utils.process_runner import CommandRunner
from .git_backend import GitBackend
from .jj_backend import JjBackend
from .vcs_backend import VcsBackend

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory for creating the VCS backend selected by configuration."""

    BACKENDS: Dict[str, Type[VcsBackend]] = {
        "git": GitBackend,
        "jj": JjBackend,
    }

    @staticmethod
    def create(config: BlameConfig, runner: CommandRunner, store: BlameStore) -> VcsBackend:
        """Create the backend named by ``config.vcs``.

        Args:
            config: Configuration object
            runner: Command runner the backend uses
            store: Blame cache the backend fills

        Returns:
            Backend instance

        Raises:
            ValueError: If the configured VCS is not supported
        """
        backend_class = BackendFactory.BACKENDS.get(config.vcs)
        if backend_class is None:
            raise ValueError(f"Unsupported VCS backend: {config.vcs}")

        logger.info(f"Creating {backend_class.__name__}")
        return backend_class(config=config, runner=runner, store=store)
