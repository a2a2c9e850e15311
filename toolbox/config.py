"""
Runtime settings for Toolbox.

Settings are resolved from the environment:

    TOOLBOX_HOME       data directory (default: ~/.toolbox)
    TOOLBOX_USE_FZF    use fzf multi-select when deleting (default: false)
    TOOLBOX_LOG_LEVEL  log level (default: WARNING)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Resolved Toolbox settings."""
    home: Path
    use_fzf: bool = False
    log_level: str = "WARNING"

    @property
    def db_file(self) -> Path:
        """Path of the command store file."""
        return self.home / "commands.json"

    @property
    def export_dir(self) -> Path:
        """Directory where bundles are exported by default."""
        return self.home / "exports"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Settings instance
        """
        if environ is None:
            environ = os.environ

        home = environ.get("TOOLBOX_HOME") or str(Path.home() / ".toolbox")
        use_fzf = environ.get("TOOLBOX_USE_FZF", "false").strip().lower() in TRUTHY
        log_level = environ.get("TOOLBOX_LOG_LEVEL", "WARNING").upper()

        return cls(home=Path(home).expanduser(), use_fzf=use_fzf, log_level=log_level)
