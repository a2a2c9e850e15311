"""
Base transport interface.

A transport hands a saved command to a shell. Output is not captured:
the command writes straight to the user's terminal.
"""

import re
from abc import ABC, abstractmethod
from typing import List

# Commands that deserve a second look before they run
DANGEROUS_COMMANDS = [
    r"\brm\s+-rf?\s+/",  # Recursive delete from root
    r"\bdd\s+if=/dev/",  # Disk operations
    r"\bmkfs\.",  # Format filesystem
    r":\(\)\s*\{\s*:\|:\s*&\s*\};:",  # Fork bomb
    r"\bchmod\s+(-R\s+)?777",  # World-writable
    r"curl.*\|\s*(sudo\s+)?(bash|sh)\b",  # Pipe to shell
    r"wget.*\|\s*(sudo\s+)?(bash|sh)\b",  # Pipe to shell
    r">\s*/dev/sd[a-z]",  # Direct disk write
    r"\b(shutdown|reboot)\b",
]


def dangerous_patterns(command: str) -> List[str]:
    """
    Return the risky patterns a command matches.

    Args:
        command: Shell command text

    Returns:
        List of matching patterns (empty when the command looks harmless)
    """
    return [p for p in DANGEROUS_COMMANDS if re.search(p, command, re.IGNORECASE)]


class Transport(ABC):
    """
    Abstract base class for running saved commands.

    Implementations:
    - LocalTransport: Run commands in a local shell
    """

    @abstractmethod
    def run_shell(self, command: str) -> int:
        """
        Run a command via shell, inheriting stdout/stderr.

        Args:
            command: Command to run (as shell string)

        Returns:
            Exit code

        Example:
            code = transport.run_shell("ls -la /tmp")
        """
        pass

    def close(self) -> None:
        """Release transport resources. No-op by default."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
