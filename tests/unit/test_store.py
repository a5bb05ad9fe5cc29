"""Unit tests for the device state store."""

from __future__ import annotations

import pytest

from light_panel.exceptions import ValidationError
from light_panel.store import DeviceStateStore, default_fixtures
from light_panel.structs import Color, Fixture

WHITE = Color(red=0, green=0, blue=0, white=255)


class TestDefaults:
    def test_four_default_fixtures(self):
        """A new session has Light 1..4, all on, included and white."""
        store = DeviceStateStore()

        assert [f.id for f in store.fixtures] == [1, 2, 3, 4]
        assert [f.label for f in store.fixtures] == ["Light 1", "Light 2", "Light 3", "Light 4"]
        assert all(f.power and f.enabled for f in store.fixtures)
        assert all(f.color == WHITE for f in store.fixtures)

    def test_default_fixture_count(self):
        assert len(default_fixtures(6)) == 6

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            _ = DeviceStateStore([Fixture(id=1, label="a"), Fixture(id=1, label="b")])


class TestToggles:
    """Tests for the power and enabled toggles."""

    def test_power_toggle_is_an_involution(self):
        """Toggling twice restores the original fixture."""
        store = DeviceStateStore()
        before = store.get(2)

        store.toggle_fixture_power(2)
        assert store.get(2).power is False
        store.toggle_fixture_power(2)

        assert store.get(2) == before

    def test_enabled_toggle_returns_previous_value(self):
        store = DeviceStateStore()

        assert store.toggle_fixture_enabled(1) is True
        assert store.get(1).enabled is False
        assert store.toggle_fixture_enabled(1) is False
        assert store.get(1).enabled is True

    def test_unknown_id_leaves_store_untouched(self):
        """Updates for ids that do not exist change nothing."""
        store = DeviceStateStore()
        before = store.fixtures

        store.toggle_fixture_power(42)
        assert store.toggle_fixture_enabled(42) is None
        store.set_color(42, Color(red=1, green=2, blue=3, white=4))

        assert store.fixtures == before

    def test_other_fixtures_keep_identity(self):
        """Only the targeted fixture is replaced."""
        store = DeviceStateStore()
        first, second, third, fourth = store.fixtures

        store.toggle_fixture_power(3)

        assert store.fixtures[0] is first
        assert store.fixtures[1] is second
        assert store.fixtures[2] is not third
        assert store.fixtures[3] is fourth


class TestColors:
    """Tests for colour edits."""

    def test_set_color_is_idempotent(self):
        store = DeviceStateStore()
        color = Color(red=10, green=20, blue=30, white=40)

        store.set_color(1, color)
        once = store.fixtures
        store.set_color(1, color)

        assert store.fixtures == once
        assert store.get(1).color == color

    def test_preview_color_matches_set_color(self):
        """Previewing a swatch has the same effect as setting the colour."""
        color = Color.from_values([255, 0, 0, 128])
        previewed = DeviceStateStore()
        direct = DeviceStateStore()

        previewed.preview_color(4, color)
        direct.set_color(4, color)

        assert previewed.fixtures == direct.fixtures

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("128", 128),
            ("300", 255),
            ("-5", 0),
            ("", None),
            ("abc", None),
        ],
    )
    def test_edit_channel_normalizes_input(self, raw, expected):
        store = DeviceStateStore()

        color = store.edit_channel(1, "green", raw)

        assert color is not None
        assert color.green == expected
        assert store.get(1).color.green == expected

    def test_edit_channel_unknown_fixture(self):
        assert DeviceStateStore().edit_channel(9, "red", "1") is None


class TestPendingSave:
    """Tests for the save projection."""

    def test_projects_powered_fixtures(self):
        store = DeviceStateStore()
        store.toggle_fixture_power(1)

        pending = store.pending_save()

        assert [entry.id for entry in pending] == [2, 3, 4]
        assert all(entry.color == WHITE for entry in pending)

    def test_enabled_does_not_affect_save(self):
        """The physical switch state is independent of save inclusion."""
        store = DeviceStateStore()
        _ = store.toggle_fixture_enabled(1)

        assert [entry.id for entry in store.pending_save()] == [1, 2, 3, 4]

    def test_unset_channel_raises(self):
        store = DeviceStateStore()
        _ = store.edit_channel(3, "blue", "")

        with pytest.raises(ValidationError) as exc_info:
            _ = store.pending_save()

        assert exc_info.value.fixture_id == 3
        assert exc_info.value.channel == "blue"
        assert exc_info.value.value is None

    def test_partial_swatch_color_raises(self):
        """An RGB-only colour leaves white unset, which blocks the save."""
        store = DeviceStateStore()
        store.set_color(2, Color.from_values([255, 0, 0]))

        with pytest.raises(ValidationError):
            _ = store.pending_save()
