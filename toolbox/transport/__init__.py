"""
Transport layer for running saved commands.
"""

from toolbox.transport.base import Transport, dangerous_patterns
from toolbox.transport.local import LocalTransport

__all__ = ["Transport", "LocalTransport", "dangerous_patterns"]
