"""
Local transport - run saved commands on the local machine.
"""

import os
import subprocess
from typing import Optional

from toolbox.logging import ToolboxLogger, get_toolbox_logger
from toolbox.transport.base import Transport, dangerous_patterns

logger = get_toolbox_logger(__name__)


class LocalTransport(Transport):
    """
    Local transport using subprocess.

    Commands run through the user's shell so pipes, redirects and
    aliases-by-script work as typed.
    """

    def __init__(self, shell: Optional[str] = None, log: Optional[ToolboxLogger] = None):
        """
        Initialize local transport.

        Args:
            shell: Shell executable (default: $SHELL, then /bin/sh)
            log: Logger for user-facing warnings
        """
        self.shell = shell or os.environ.get("SHELL") or "/bin/sh"
        self.log = log or logger

    def run_shell(self, command: str) -> int:
        """
        Run command via shell with inherited stdout/stderr.

        Args:
            command: Shell command string

        Returns:
            Exit code
        """
        matches = dangerous_patterns(command)
        if matches:
            self.log.security_warning(
                "This command matches a destructive pattern. Make sure it is what you meant.",
                command=command,
            )

        self.log.debug(f"Running via {self.shell}: {command}")
        result = subprocess.run(command, shell=True, executable=self.shell)
        return result.returncode
