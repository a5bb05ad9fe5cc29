"""Unit tests for the LightPanel session facade."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from light_panel.exceptions import UnknownSceneError
from light_panel.notifications import LogNotifier
from light_panel.panel import LightPanel
from light_panel.structs import Color, ConnectionStatus, DeliveryPolicy, NotificationLevel, PanelEnv
from tests.helpers.mqtt_doubles import make_mqtt_client, settle


@pytest.fixture
def panel_env() -> PanelEnv:
    return PanelEnv(mqtt_addr="broker.test", save_topic="lampu", busy_seconds=0.01, connect_timeout=1.0)


@pytest.fixture
def panel(panel_env, mqtt_client, notifier) -> LightPanel:
    return LightPanel(panel_env, notifier=notifier, client_factory=MagicMock(return_value=mqtt_client))


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_connects_immediately(self, panel: LightPanel, notifier: LogNotifier):
        """Opening the panel starts connecting without waiting for an intent."""
        await panel.start()
        await settle()

        assert panel.coordinator.status is ConnectionStatus.CONNECTED
        assert notifier.messages(NotificationLevel.SUCCESS) == ["Connected"]
        await panel.stop()

    @pytest.mark.asyncio
    async def test_context_manager_tears_down(self, panel: LightPanel):
        async with panel:
            await panel.coordinator.connect()

        assert panel.coordinator.closed
        assert panel.coordinator.status is ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_animation_task_is_cancelled_on_stop(self, panel: LightPanel):
        await panel.start(animate=True)
        await asyncio.sleep(0.3)

        assert panel.oscillator.brightness < 100
        await panel.stop()
        assert panel._animation_task is None

    @pytest.mark.asyncio
    async def test_env_wires_topics_and_policy(self, mqtt_client):
        env = PanelEnv(save_topic="fixtures/save", delivery_policy=DeliveryPolicy.DROP)
        panel = LightPanel(env, client_factory=MagicMock(return_value=mqtt_client))

        assert panel.dispatcher.topics.save == "fixtures/save"
        assert panel.dispatcher.policy is DeliveryPolicy.DROP
        assert panel.dispatcher.busy is panel.busy


class TestSwatches:
    @pytest.mark.asyncio
    async def test_preview_swatch_then_save(self, panel: LightPanel, mqtt_client):
        """A swatch preview lands in the next save payload."""
        async with panel:
            panel.preview_swatch(2, "Red")

            assert await panel.dispatcher.save_fixture_colors() is True

        payload = json.loads(mqtt_client.publish.call_args.args[1])
        assert payload[1] == {"id": 2, "color": {"red": 255, "green": 0, "blue": 0, "white": 0}}

    def test_unknown_swatch(self, panel: LightPanel):
        with pytest.raises(UnknownSceneError):
            panel.preview_swatch(1, "Chartreuse")
        assert panel.store.get(1).color == Color(red=0, green=0, blue=0, white=255)

    def test_dim_swatches_follow_pulse(self, panel: LightPanel):
        panel.oscillator.brightness = 40

        swatches = dict(panel.dim_swatches())

        assert swatches["Dim Red"] == "rgba(255,0,0, 0.4)"
