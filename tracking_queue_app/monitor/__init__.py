"""
Live terminal monitor of the queue shards.
"""

from .dashboard import DashboardState, LiveDashboard
from .input_decoder import InputDecoder, Key, KeyCommand
from .terminal import TerminalSession

__all__ = [
    "DashboardState",
    "LiveDashboard",
    "InputDecoder",
    "Key",
    "KeyCommand",
    "TerminalSession",
]
