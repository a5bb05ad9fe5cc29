"""Connection Coordinator: owns the single MQTT session of the panel.

State machine::

    DISCONNECTED --ensure_connected()--> CONNECTING --connect--> CONNECTED
    CONNECTING   --error--> DISCONNECTED
    CONNECTED    --offline/error--> DISCONNECTED
    any          --teardown()--> DISCONNECTED (terminal)

Transport events come from the aiomqtt lifecycle: entering the client
context is "connect", failing to enter it is "error", and losing an
established connection is "offline". Nothing reconnects on its own; the
next `ensure_connected()` starts a fresh attempt.
"""

from __future__ import annotations

import asyncio
import contextlib
import ssl
from collections.abc import Callable
from typing import TypeAlias

import aiomqtt

from light_panel.exceptions import OfflineNotice, PanelConnectionError
from light_panel.logging_abstraction import get_logger
from light_panel.notifications import Notifier
from light_panel.structs import BrokerEndpoint, ConnectionStatus, ConnectOptions

__all__ = ["ClientFactory", "ConnectionCoordinator", "build_client"]

logger = get_logger(__name__)

ClientFactory: TypeAlias = Callable[[BrokerEndpoint, ConnectOptions], aiomqtt.Client]
StatusListener: TypeAlias = Callable[[ConnectionStatus], None]

_PROTOCOLS: dict[int, aiomqtt.ProtocolVersion] = {
    3: aiomqtt.ProtocolVersion.V31,
    4: aiomqtt.ProtocolVersion.V311,
    5: aiomqtt.ProtocolVersion.V5,
}


def build_client(endpoint: BrokerEndpoint, options: ConnectOptions) -> aiomqtt.Client:
    """Create the aiomqtt client for one connect attempt."""
    try:
        protocol = _PROTOCOLS[options.protocol_version]
    except KeyError:
        msg = f"Unsupported MQTT protocol version: {options.protocol_version}"
        raise ValueError(msg) from None
    websockets = endpoint.transport == "websockets"
    return aiomqtt.Client(
        hostname=endpoint.host,
        port=endpoint.port,
        username=options.username,
        password=options.password,
        identifier=options.client_id,
        protocol=protocol,
        transport=endpoint.transport,
        websocket_path=endpoint.path if websockets else None,
        tls_context=ssl.create_default_context() if endpoint.use_tls else None,
        keepalive=options.keepalive,
    )


def _consume_exception(future: asyncio.Future[None]) -> None:
    # readiness futures may fail with nobody awaiting them
    if not future.cancelled():
        _ = future.exception()


class ConnectionCoordinator:
    """Owns the transport session and exposes its status.

    The aiomqtt client is never handed out; the rest of the panel goes
    through `ensure_connected()`, `publish()` and `teardown()`.
    """

    lp: str = "coordinator:"

    def __init__(
        self,
        endpoint: BrokerEndpoint,
        options: ConnectOptions,
        notifier: Notifier,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.endpoint: BrokerEndpoint = endpoint
        self.options: ConnectOptions = options
        self.notifier: Notifier = notifier
        self._client_factory: ClientFactory = client_factory or build_client
        self._status: ConnectionStatus = ConnectionStatus.DISCONNECTED
        self._client: aiomqtt.Client | None = None
        self._session_task: asyncio.Task[None] | None = None
        self._ready: asyncio.Future[None] | None = None
        self._listeners: list[StatusListener] = []
        self._closed: bool = False

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status is ConnectionStatus.CONNECTED

    @property
    def has_session(self) -> bool:
        return self._session_task is not None and not self._session_task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_status(self, status: ConnectionStatus) -> None:
        previous = self._status
        if status is previous:
            return
        self._status = status
        logger.info("%s status %s -> %s", self.lp, previous, status)
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("%s status listener %r failed", self.lp, listener)

    def _new_future(self) -> asyncio.Future[None]:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_exception)
        return future

    def _fail_ready(self, exc: PanelConnectionError) -> None:
        if self._ready is not None and not self._ready.done():
            self._ready.set_exception(exc)

    def ensure_connected(
        self,
        endpoint: BrokerEndpoint | None = None,
        options: ConnectOptions | None = None,
    ) -> asyncio.Future[None]:
        """Start a connect attempt unless a session already exists.

        Returns the readiness future of the current attempt. It resolves on
        connect and fails with PanelConnectionError on error, offline or
        teardown. Calling this repeatedly never creates a second session.
        """
        lp = f"{self.lp}ensure_connected:"
        if self._closed:
            future = self._new_future()
            future.set_exception(PanelConnectionError("MQTT session closed", state=self._status.value))
            return future

        if self.has_session or (self.is_connected and self._ready is not None):
            assert self._ready is not None, "a live session always has a readiness future"
            logger.debug("%s session exists (status=%s), nothing to do", lp, self._status)
            return self._ready

        if endpoint is not None:
            self.endpoint = endpoint
        if options is not None:
            self.options = options

        self._ready = self._new_future()
        self._set_status(ConnectionStatus.CONNECTING)
        self._session_task = asyncio.get_running_loop().create_task(
            self._run_session(),
            name="light_panel.mqtt_session",
        )
        return self._ready

    async def connect(self) -> None:
        """Wait until connected.

        Raises:
            PanelConnectionError: the attempt failed or the session was closed

        """
        await asyncio.shield(self.ensure_connected())

    async def _run_session(self) -> None:
        lp = f"{self.lp}session:"
        logger.info(
            "%s connecting",
            lp,
            extra={
                "url": self.endpoint.url,
                "client_id": self.options.client_id,
                "protocol": f"{self.options.protocol_id}v{self.options.protocol_version}",
            },
        )
        try:
            client = self._client_factory(self.endpoint, self.options)
            async with client:
                self._client = client
                self.handle_connect()
                await self._watch(client)
        except aiomqtt.MqttError as exc:
            self._client = None
            if self._status is ConnectionStatus.CONNECTED:
                logger.warning("%s connection lost: %s", lp, exc)
                self.handle_offline()
            else:
                self.handle_error(exc)
        except asyncio.CancelledError:
            logger.debug("%s session task cancelled", lp)
            raise
        except Exception as exc:
            logger.exception("%s unexpected session failure", lp)
            self.handle_error(exc)
        finally:
            self._client = None

    async def _watch(self, client: aiomqtt.Client) -> None:
        """Park until the broker connection drops.

        Nothing is subscribed, so the message iterator only wakes up to raise
        MqttError on disconnect.
        """
        async for message in client.messages:
            logger.debug("%s ignoring message on %s", self.lp, message.topic)
        msg = "MQTT message stream ended"
        raise aiomqtt.MqttError(msg)

    def handle_connect(self) -> None:
        """Transport 'connect' event."""
        if self._closed:
            logger.debug("%s connect after teardown ignored", self.lp)
            return
        previous = self._status
        self._set_status(ConnectionStatus.CONNECTED)
        if previous is not ConnectionStatus.CONNECTED:
            self.notifier.success("Connected")
        if self._ready is None or self._ready.done():
            self._ready = self._new_future()
        self._ready.set_result(None)

    def handle_offline(self) -> None:
        """Transport 'offline' event; warns only when leaving a non-disconnected state."""
        if self._closed:
            return
        previous = self._status
        notice = OfflineNotice(state=previous.value)
        self._set_status(ConnectionStatus.DISCONNECTED)
        if previous is not ConnectionStatus.DISCONNECTED:
            self.notifier.warning(notice.reason)
        else:
            logger.debug("%s repeated offline while disconnected, not warning again", self.lp)
        self._fail_ready(notice)

    def handle_error(self, exc: BaseException | str) -> None:
        """Transport 'error' event; the message reaches the user verbatim."""
        if self._closed:
            return
        message = str(exc)
        previous = self._status
        logger.error("%s transport error while %s: %s", self.lp, previous, message)
        self._set_status(ConnectionStatus.DISCONNECTED)
        self.notifier.error(message)
        self._fail_ready(PanelConnectionError(message, state=previous.value))

    async def publish(self, topic: str, payload: str | bytes) -> bool:
        """Publish through the live session; False when there is none or the broker rejects it."""
        lp = f"{self.lp}publish:"
        client = self._client
        if client is None or self._status is not ConnectionStatus.CONNECTED:
            logger.debug("%s no live session (status=%s), dropping publish to %s", lp, self._status, topic)
            return False
        try:
            await client.publish(topic, payload, qos=0, retain=False)
        except aiomqtt.MqttCodeError as mqtt_code_exc:
            logger.warning("%s [MqttCodeError] -> %s", lp, mqtt_code_exc)
        except aiomqtt.MqttError as mqtt_err:
            logger.warning("%s [MqttError] -> %s", lp, mqtt_err)
        else:
            logger.debug("%s sent to %s", lp, topic, extra={"payload": payload})
            return True
        return False

    async def teardown(self) -> None:
        """Close the session if one exists. Idempotent; the coordinator stays closed."""
        lp = f"{self.lp}teardown:"
        self._closed = True
        task, self._session_task = self._session_task, None
        if task is not None and not task.done():
            logger.debug("%s cancelling session task", lp)
            _ = task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._client = None
        self._fail_ready(PanelConnectionError("MQTT session closed", state=self._status.value))
        self._set_status(ConnectionStatus.DISCONNECTED)
        logger.info("%s session closed", lp)
