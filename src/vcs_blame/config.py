"""Configuration management for VCS Blame."""

import json
import logging
from pathlib import Path
from typing import List, Optional, Any, Literal

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class BlameConfig(BaseModel):
    """Main configuration for VCS Blame.

    The display and scheduling fields (virtual text, highlight group, delay,
    events) are consumed by the editor integration; they are validated here
    so a bad value is reported once, at load time.
    """

    enabled: bool = Field(default=True, description="Show blame information")

    # Backend selection
    vcs: Literal["git", "jj"] = Field(
        default="git",
        description="Version control backend: 'git' or 'jj' (Jujutsu)",
    )

    # Text rendering
    message_template: str = Field(
        default="  <summary> • <date> • <author>",
        description=(
            "Blame text template. Placeholders: <author>, <committer>, <date>, "
            "<committer-date>, <summary>, <sha>"
        ),
    )
    date_format: str = Field(
        default="%c",
        description="strftime format for dates; %r inserts a relative time phrase",
    )
    message_when_not_committed: str = Field(
        default="  Not Committed Yet",
        description="Template used for lines that are not committed yet",
    )
    max_commit_summary_length: int = Field(
        default=0,
        ge=0,
        description="Maximum length of the rendered summary (0 = no limit)",
    )

    ignored_filetypes: List[str] = Field(
        default_factory=list, description="File types that are never blamed"
    )
    use_blame_commit_file_urls: bool = Field(
        default=False,
        description=(
            "Build file URLs from the blame commit of the selection instead of "
            "the latest commit"
        ),
    )

    # Editor integration
    display_virtual_text: bool = Field(
        default=True, description="Render blame text as virtual text"
    )
    virtual_text_column: Optional[int] = Field(
        default=None, ge=1, description="Column where virtual text starts"
    )
    highlight_group: str = Field(
        default="Comment", description="Highlight group of the virtual text"
    )
    delay: int = Field(
        default=250, ge=0, description="Debounce delay in milliseconds"
    )
    schedule_event: Literal["CursorMoved", "CursorHold"] = Field(
        default="CursorMoved", description="Event that schedules a blame update"
    )
    clear_event: Literal["CursorMovedI", "CursorHoldI"] = Field(
        default="CursorMovedI", description="Event that clears the blame text"
    )

    command_timeout: float = Field(
        default=30.0, gt=0, description="Timeout for VCS commands in seconds"
    )

    @field_validator("ignored_filetypes")
    @classmethod
    def normalize_filetypes(cls, v: List[str]) -> List[str]:
        """Remove dots and surrounding whitespace from file types."""
        return [ft.strip().lstrip(".") for ft in v if ft.strip()]


class ConfigManager:
    """Manages configuration loading, saving, and validation."""

    DEFAULT_CONFIG_PATH = Path(".vcs-blame/config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: Optional[BlameConfig] = None

    def load(self) -> BlameConfig:
        """Load configuration from file or create default."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                self._config = BlameConfig(**data)
            except Exception as e:
                raise ValueError(f"Failed to load config from {self.config_path}: {e}")
        else:
            logger.debug(f"No config at {self.config_path}, using defaults")
            self._config = BlameConfig()

        return self._config

    def save(self, config: Optional[BlameConfig] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)

    def get_config(self) -> BlameConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self.load()
        if self._config is None:
            raise RuntimeError("Failed to load configuration")
        return self._config

    def create_default_config(self, **overrides: Any) -> BlameConfig:
        """Create and save a default configuration."""
        config = BlameConfig(**overrides)
        self._config = config
        self.save()
        return config

    def update_config(self, **kwargs: Any) -> BlameConfig:
        """Update configuration with new values."""
        config = self.get_config()

        config_dict = config.model_dump()
        config_dict.update(kwargs)

        new_config = BlameConfig(**config_dict)
        self._config = new_config
        self.save()
        return new_config

    @staticmethod
    def find_config_path(start_dir: Optional[Path] = None) -> Optional[Path]:
        """Find .vcs-blame/config.json by walking up the directory tree.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Path to config.json if found, None otherwise
        """
        current = start_dir or Path.cwd()

        for path in [current] + list(current.parents):
            config_path = path / ".vcs-blame" / "config.json"
            if config_path.exists():
                return config_path

        return None

    @classmethod
    def create_with_backtrack(cls, start_dir: Optional[Path] = None) -> "ConfigManager":
        """Create ConfigManager by finding config through directory backtracking.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            ConfigManager instance with found config path or default path
        """
        config_path = cls.find_config_path(start_dir)
        if config_path is None:
            start = start_dir or Path.cwd()
            config_path = start / ".vcs-blame" / "config.json"
        return cls(config_path)
