"""MQTT side of the panel.

- coordinator.py: ConnectionCoordinator, owner of the single broker session
- dispatcher.py: CommandDispatcher, intent -> publish
"""

from .coordinator import ConnectionCoordinator, build_client
from .dispatcher import CommandDispatcher, Topics

__all__ = [
    "CommandDispatcher",
    "ConnectionCoordinator",
    "Topics",
    "build_client",
]
