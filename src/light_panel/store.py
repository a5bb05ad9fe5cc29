"""Device State Store: last-known local state of every fixture.

Updates are synchronous and replace the matching fixture with a modified
copy; fixtures with other ids are kept as the same objects. Unknown ids
leave the store untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from light_panel.const import DEFAULT_COLOR_VALUES, DEFAULT_FIXTURE_COUNT
from light_panel.exceptions import ValidationError
from light_panel.logging_abstraction import get_logger
from light_panel.structs import CHANNELS, ChannelName, Color, Fixture, PendingSaveEntry

__all__ = ["DeviceStateStore", "default_fixtures"]

logger = get_logger(__name__)


def default_fixtures(count: int = DEFAULT_FIXTURE_COUNT) -> tuple[Fixture, ...]:
    """Fixtures created at session start: `Light 1`..`Light N`, on and included, white 255."""
    color = Color.from_values(DEFAULT_COLOR_VALUES)
    return tuple(Fixture(id=i, label=f"Light {i}", color=color) for i in range(1, count + 1))


class DeviceStateStore:
    lp: str = "store:"

    def __init__(self, fixtures: Iterable[Fixture] | None = None) -> None:
        self._fixtures: tuple[Fixture, ...] = tuple(fixtures) if fixtures is not None else default_fixtures()
        ids = [f.id for f in self._fixtures]
        if len(ids) != len(set(ids)):
            msg = f"Fixture ids must be unique: {ids}"
            raise ValueError(msg)

    @property
    def fixtures(self) -> tuple[Fixture, ...]:
        return self._fixtures

    def get(self, fixture_id: int) -> Fixture | None:
        for fixture in self._fixtures:
            if fixture.id == fixture_id:
                return fixture
        return None

    def _replace(self, fixture_id: int, change: Callable[[Fixture], Fixture]) -> Fixture | None:
        """Swap the matching fixture for `change(fixture)`; return the original."""
        original = self.get(fixture_id)
        if original is None:
            logger.debug("%s ignoring update for unknown fixture %s", self.lp, fixture_id)
            return None
        self._fixtures = tuple(change(f) if f.id == fixture_id else f for f in self._fixtures)
        return original

    def toggle_fixture_power(self, fixture_id: int) -> None:
        _ = self._replace(fixture_id, lambda f: f.model_copy(update={"power": not f.power}))

    def toggle_fixture_enabled(self, fixture_id: int) -> bool | None:
        """Flip `enabled` and return the value it had before the flip (None if unknown)."""
        original = self._replace(fixture_id, lambda f: f.model_copy(update={"enabled": not f.enabled}))
        return None if original is None else original.enabled

    def set_color(self, fixture_id: int, color: Color) -> None:
        _ = self._replace(fixture_id, lambda f: f.model_copy(update={"color": color}))

    def preview_color(self, fixture_id: int, color: Color) -> None:
        """Same effect as set_color; used when the colour comes from a swatch."""
        self.set_color(fixture_id, color)

    def edit_channel(self, fixture_id: int, channel: ChannelName, raw: object) -> Color | None:
        """Apply one manual channel edit (clamped, or unset when unparseable)."""
        fixture = self.get(fixture_id)
        if fixture is None:
            return None
        color = fixture.color.with_channel(channel, raw)
        self.set_color(fixture_id, color)
        return color

    def pending_save(self) -> list[PendingSaveEntry]:
        """Project fixtures with `power` set to {id, color}, validating every channel.

        Raises:
            ValidationError: a channel is unset or not an int in [0, 255]

        """
        entries: list[PendingSaveEntry] = []
        for fixture in self._fixtures:
            if not fixture.power:
                continue
            for channel in CHANNELS:
                value = getattr(fixture.color, channel)
                if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 255:
                    raise ValidationError(fixture.id, channel, value)
            entries.append(PendingSaveEntry(id=fixture.id, color=fixture.color))
        return entries
