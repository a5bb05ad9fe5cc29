"""Command Dispatcher: turns panel intents into MQTT publishes.

Every publishing intent asks the coordinator for a session first. With
DeliveryPolicy.AWAIT the intent waits for the pending connect (bounded by
`connect_timeout`) and then publishes. With DeliveryPolicy.DROP it only
publishes if the status was CONNECTED when checked, so the first intent
issued while disconnected starts a connect and its own publish is dropped.

Fixture state in the store changes at intent time whether or not the
publish goes out; a failed publish is reported (return value + warning)
but never rolled back.
"""

from __future__ import annotations

import asyncio
import json

from light_panel.animation import BusyWindow
from light_panel.correlation import correlation_context
from light_panel.exceptions import (
    PanelConnectionError,
    PanelError,
    UnknownFixtureError,
    UnknownSceneError,
    ValidationError,
)
from light_panel.logging_abstraction import get_logger
from light_panel.mqtt.coordinator import ConnectionCoordinator
from light_panel.notifications import Notifier
from light_panel.scenes import SceneCatalog
from light_panel.store import DeviceStateStore
from light_panel.structs import ConnectionStatus, DeliveryPolicy, SceneKind

__all__ = ["CommandDispatcher", "Topics"]

logger = get_logger(__name__)


class Topics:
    """Outbound topics of the panel."""

    def __init__(
        self,
        scene: str = "vl/dmx/wawasan/rx",
        save: str = "lampu",
        on: str = "on",
        off: str = "off",
    ) -> None:
        self.scene: str = scene
        self.save: str = save
        self.on: str = on
        self.off: str = off

    def switch(self, previously_enabled: bool) -> str:
        """On/off topic chosen by the enabled value *before* the toggle."""
        return self.off if previously_enabled else self.on


class CommandDispatcher:
    lp: str = "dispatcher:"

    def __init__(
        self,
        coordinator: ConnectionCoordinator,
        store: DeviceStateStore,
        catalog: SceneCatalog,
        notifier: Notifier,
        topics: Topics | None = None,
        policy: DeliveryPolicy = DeliveryPolicy.AWAIT,
        connect_timeout: float = 10.0,
        busy: BusyWindow | None = None,
    ) -> None:
        self.coordinator: ConnectionCoordinator = coordinator
        self.store: DeviceStateStore = store
        self.catalog: SceneCatalog = catalog
        self.notifier: Notifier = notifier
        self.topics: Topics = topics or Topics()
        self.policy: DeliveryPolicy = policy
        self.connect_timeout: float = connect_timeout
        self.busy: BusyWindow = busy or BusyWindow()
        self.selected_scene: str | None = None
        self.focused: bool = False

    async def _ready(self, lp: str) -> bool:
        """Ask for a session and decide whether this intent may publish now."""
        status = self.coordinator.status
        pending = self.coordinator.ensure_connected()
        if status is ConnectionStatus.CONNECTED:
            return True
        if self.policy is DeliveryPolicy.DROP:
            logger.info("%s not connected (status=%s), publish dropped", lp, status)
            return False
        try:
            await asyncio.wait_for(asyncio.shield(pending), timeout=self.connect_timeout)
        except PanelConnectionError as e:
            # the coordinator has already told the user about the failure
            logger.warning("%s connect failed, publish dropped: %s", lp, e)
            return False
        except TimeoutError:
            logger.warning("%s no connection after %.1fs, publish dropped", lp, self.connect_timeout)
            self.notifier.warning("Still connecting to MQTT broker, command not sent")
            return False
        return True

    async def _send(self, lp: str, topic: str, payload: str) -> bool:
        sent = await self.coordinator.publish(topic, payload)
        if not sent:
            logger.warning("%s publish to %s failed", lp, topic)
            self.notifier.warning(f"Command to '{topic}' was not delivered")
        return sent

    async def select_dim_scene(self, name: str) -> bool:
        """Select a known dim scene and start the busy window, whether or not it is sent."""
        lp = f"{self.lp}select_dim_scene:"
        with correlation_context():
            try:
                _ = self.catalog.find(name, SceneKind.DIM)
            except UnknownSceneError as e:
                logger.warning("%s %s", lp, e)
                self.notifier.error(str(e))
                return False
            self.selected_scene = name
            self.focused = True
            sent = False
            if await self._ready(lp):
                sent = await self._send(lp, self.topics.scene, name)
                if sent:
                    self.notifier.info(f"{name} selected...")
            self.busy.start()
            return sent

    async def select_solid_scene(self, name: str) -> bool:
        """Publish a solid scene; it becomes the selected scene only once sent."""
        lp = f"{self.lp}select_solid_scene:"
        with correlation_context():
            try:
                _ = self.catalog.find(name, SceneKind.SOLID)
                if not await self._ready(lp):
                    return False
                if not await self._send(lp, self.topics.scene, name):
                    return False
            except PanelError as e:
                logger.warning("%s %s", lp, e)
                self.notifier.error(str(e))
                return False
            self.notifier.info(f"{name} selected...")
            self.selected_scene = name
            return True

    async def save_fixture_colors(self) -> bool:
        """Send {id, color} of every fixture with `power` set.

        Colours are validated before any connection is requested; a bad
        channel aborts the save without publishing.
        """
        lp = f"{self.lp}save:"
        with correlation_context():
            try:
                pending = self.store.pending_save()
                payload = json.dumps([entry.model_dump() for entry in pending])
                if not await self._ready(lp):
                    return False
                sent = await self._send(lp, self.topics.save, payload)
            except ValidationError as e:
                logger.warning("%s %s", lp, e)
                self.notifier.error("Please fill in all fields.")
                return False
            if sent:
                logger.info("%s saved %d fixture(s)", lp, len(pending))
                self.notifier.info("Sending...")
            return sent

    def toggle_fixture_power(self, fixture_id: int) -> None:
        """Local only: include/exclude the fixture from the next save."""
        self.store.toggle_fixture_power(fixture_id)

    async def toggle_fixture_enabled(self, fixture_id: int) -> bool:
        """Flip the physical switch and publish the fixture id to on/off."""
        lp = f"{self.lp}toggle_enabled:"
        with correlation_context():
            try:
                previous = self.store.toggle_fixture_enabled(fixture_id)
                if previous is None:
                    raise UnknownFixtureError(fixture_id)
                if not await self._ready(lp):
                    return False
                sent = await self._send(lp, self.topics.switch(previous), json.dumps(fixture_id))
            except PanelError as e:
                logger.warning("%s %s", lp, e)
                self.notifier.error(str(e))
                return False
            if sent:
                self.notifier.info("Switching light off..." if previous else "Switching light on...")
            return sent

    def blur(self) -> None:
        self.focused = False
