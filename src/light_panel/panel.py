"""LightPanel: one panel session with all of its parts wired together."""

from __future__ import annotations

import asyncio
import contextlib
from types import TracebackType

from light_panel.animation import BrightnessOscillator, BusyWindow
from light_panel.correlation import ensure_correlation_id
from light_panel.logging_abstraction import get_logger
from light_panel.mqtt.coordinator import ClientFactory, ConnectionCoordinator
from light_panel.mqtt.dispatcher import CommandDispatcher, Topics
from light_panel.notifications import LogNotifier, Notifier
from light_panel.scenes import SceneCatalog
from light_panel.store import DeviceStateStore
from light_panel.structs import PanelEnv, SceneKind

__all__ = ["LightPanel"]

logger = get_logger(__name__)


class LightPanel:
    """Store, catalog, coordinator and dispatcher for one session.

    `start()` begins connecting straight away (like the panel opening) and
    `stop()` closes the session whatever is still in flight.
    """

    lp: str = "panel:"

    def __init__(
        self,
        env: PanelEnv | None = None,
        *,
        catalog: SceneCatalog | None = None,
        store: DeviceStateStore | None = None,
        notifier: Notifier | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.env: PanelEnv = env or PanelEnv.from_environ()
        self.notifier: Notifier = notifier or LogNotifier()
        self.store: DeviceStateStore = store or DeviceStateStore()
        self.catalog: SceneCatalog = catalog or SceneCatalog.load(self.env.scene_file)
        self.coordinator: ConnectionCoordinator = ConnectionCoordinator(
            self.env.endpoint,
            self.env.connect_options,
            self.notifier,
            client_factory=client_factory,
        )
        self.busy: BusyWindow = BusyWindow(self.env.busy_seconds)
        self.oscillator: BrightnessOscillator = BrightnessOscillator()
        self.dispatcher: CommandDispatcher = CommandDispatcher(
            self.coordinator,
            self.store,
            self.catalog,
            self.notifier,
            topics=Topics(
                scene=self.env.scene_topic,
                save=self.env.save_topic,
                on=self.env.on_topic,
                off=self.env.off_topic,
            ),
            policy=self.env.delivery_policy,
            connect_timeout=self.env.connect_timeout,
            busy=self.busy,
        )
        self._animation_task: asyncio.Task[None] | None = None

    async def start(self, animate: bool = False) -> None:
        _ = ensure_correlation_id()
        logger.info(
            "%s starting",
            self.lp,
            extra={"broker": self.env.endpoint.url, "policy": self.env.delivery_policy.value},
        )
        _ = self.coordinator.ensure_connected()
        if animate and self._animation_task is None:
            self._animation_task = asyncio.create_task(self.oscillator.run(), name="light_panel.dim_pulse")

    async def stop(self) -> None:
        if self._animation_task is not None:
            _ = self._animation_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._animation_task
            self._animation_task = None
        await self.coordinator.teardown()
        logger.info("%s stopped", self.lp)

    async def __aenter__(self) -> LightPanel:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    def preview_swatch(self, fixture_id: int, swatch_name: str) -> None:
        """Apply a catalog swatch to a fixture's colour.

        Raises:
            UnknownSceneError: no swatch with that name

        """
        swatch = self.catalog.find(swatch_name, SceneKind.SWATCH)
        self.store.preview_color(fixture_id, swatch.as_color())

    def dim_swatches(self) -> list[tuple[str, str]]:
        """(name, css background) of each dim scene at the current pulse opacity."""
        opacity = self.oscillator.opacity
        return [(scene.name, scene.css_background(opacity)) for scene in self.catalog.dim]
