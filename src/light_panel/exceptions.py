"""Exception hierarchy for the light panel.

Dispatcher intents catch every `PanelError`, log it and surface it through
the notifier, so none of these escape to the caller of an intent.
"""

from __future__ import annotations

__all__ = [
    "CatalogError",
    "OfflineNotice",
    "PanelConnectionError",
    "PanelError",
    "UnknownFixtureError",
    "UnknownSceneError",
    "ValidationError",
]


class PanelError(Exception):
    """Base class for all light panel errors."""


class ValidationError(PanelError):
    """A fixture colour channel is unset or out of range at save time.

    Attributes:
        fixture_id: Fixture holding the bad value
        channel: Channel name ("red", "green", "blue" or "white")
        value: The offending value (None when unset)

    """

    def __init__(self, fixture_id: int, channel: str, value: object) -> None:
        self.fixture_id: int = fixture_id
        self.channel: str = channel
        self.value: object = value
        super().__init__(f"Fixture {fixture_id}: {channel} must be an integer in [0, 255], got {value!r}")


class PanelConnectionError(PanelError):
    """Broker connection failed, dropped, or was torn down.

    Named PanelConnectionError to avoid shadowing the built-in ConnectionError.

    Attributes:
        reason: Failure reason, surfaced verbatim to the user
        state: Connection status when the error occurred

    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        self.reason: str = reason
        self.state: str = state
        super().__init__(reason)


class OfflineNotice(PanelConnectionError):
    """The transport went offline without reporting an error."""

    def __init__(self, state: str = "unknown") -> None:
        super().__init__("MQTT Connection Offline", state=state)


class UnknownSceneError(PanelError):
    def __init__(self, name: str, kind: str) -> None:
        self.name: str = name
        self.kind: str = kind
        super().__init__(f"No {kind} scene named {name!r}")


class UnknownFixtureError(PanelError):
    def __init__(self, fixture_id: int) -> None:
        self.fixture_id: int = fixture_id
        super().__init__(f"No fixture with id {fixture_id}")


class CatalogError(PanelError):
    """Scene catalog file could not be read or has the wrong shape."""

    def __init__(self, source: str, reason: str) -> None:
        self.source: str = source
        self.reason: str = reason
        super().__init__(f"Invalid scene catalog {source}: {reason}")
