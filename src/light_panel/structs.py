"""Core data structures for the light panel."""

from __future__ import annotations

import functools
import math
import os
import secrets
from collections.abc import Sequence
from enum import StrEnum
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

from light_panel.const import (
    PANEL_BUSY_SECONDS,
    PANEL_CLIENT_ID_PREFIX,
    PANEL_CONNECT_TIMEOUT,
    PANEL_DELIVERY_POLICY,
    PANEL_MQTT_ADDR,
    PANEL_MQTT_PASS,
    PANEL_MQTT_PORT,
    PANEL_MQTT_PROTOCOL,
    PANEL_MQTT_USER,
    PANEL_OFF_TOPIC,
    PANEL_ON_TOPIC,
    PANEL_SAVE_TOPIC,
    PANEL_SCENE_FILE,
    PANEL_SCENE_TOPIC,
    PANEL_WEBSOCKET_PATH,
    env_float,
    env_int,
)

__all__ = [
    "CHANNELS",
    "BrokerEndpoint",
    "ChannelName",
    "Color",
    "ConnectOptions",
    "ConnectionStatus",
    "DeliveryPolicy",
    "Fixture",
    "Notification",
    "NotificationLevel",
    "PanelEnv",
    "PendingSaveEntry",
    "Scene",
    "SceneKind",
    "normalize_channel",
    "process_client_id",
]

ChannelName: TypeAlias = Literal["red", "green", "blue", "white"]
CHANNELS: tuple[ChannelName, ...] = ("red", "green", "blue", "white")
_SCHEMES = frozenset({"mqtt", "mqtts", "tcp", "ssl", "ws", "wss"})


class ConnectionStatus(StrEnum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"


class DeliveryPolicy(StrEnum):
    """What an intent does when the broker is not connected yet.

    AWAIT waits for the pending connect and then publishes. DROP only
    publishes when already connected at the moment of the check.
    """

    AWAIT = "await"
    DROP = "drop"


class SceneKind(StrEnum):
    SOLID = "solid"
    DIM = "dim"
    SWATCH = "color"


class NotificationLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def normalize_channel(raw: object) -> int | None:
    """Parse a raw channel input into an int clamped to [0, 255].

    Empty or unparseable input yields None (the channel is unset while being edited).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        value = int(raw)
    elif isinstance(raw, str):
        try:
            value = int(raw.strip(), 10)
        except ValueError:
            return None
    else:
        return None
    return min(max(value, 0), 255)


class Color(BaseModel):
    """RGBW colour of a fixture; a None channel is unset."""

    model_config = ConfigDict(frozen=True)

    red: int | None = None
    green: int | None = None
    blue: int | None = None
    white: int | None = None

    @field_validator("red", "green", "blue", "white", mode="before")
    @classmethod
    def _clamp(cls, value: object) -> int | None:
        return normalize_channel(value)

    @classmethod
    def from_values(cls, values: Sequence[int]) -> Color:
        """Build from a swatch value list; missing trailing channels stay unset."""
        padded = [*values[:4], *([None] * (4 - len(values[:4])))]
        return cls(red=padded[0], green=padded[1], blue=padded[2], white=padded[3])

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, channel) is not None for channel in CHANNELS)

    def with_channel(self, channel: ChannelName, raw: object) -> Color:
        if channel not in CHANNELS:
            msg = f"Unknown colour channel: {channel}"
            raise KeyError(msg)
        return self.model_copy(update={channel: normalize_channel(raw)})

    def preview_rgba(self) -> tuple[int, int, int, float]:
        """Swatch preview: white drives opacity, and black RGB is shown as white."""
        alpha = round((self.white or 0) / 255, 2)
        red, green, blue = self.red, self.green, self.blue
        if red == 0 and green == 0 and blue == 0:
            red = green = blue = 255
        return (red or 0, green or 0, blue or 0, alpha)


class Fixture(BaseModel):
    """One controllable light.

    `power` marks the fixture as included in saves; `enabled` is the
    physical on/off switch.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    label: str
    power: bool = True
    enabled: bool = True
    color: Color = Color(red=0, green=0, blue=0, white=255)


class PendingSaveEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    color: Color


class Scene(BaseModel):
    """Named preset colour from the scene catalog."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: tuple[int, ...]
    text: str = ""
    kind: SceneKind = SceneKind.SOLID

    @field_validator("value")
    @classmethod
    def _check_value(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if len(value) not in (3, 4):
            msg = f"scene value needs 3 or 4 channels, got {len(value)}"
            raise ValueError(msg)
        return value

    def css_background(self, opacity: float | None = None) -> str:
        """CSS rgba() for the swatch; dim scenes pass the current opacity."""
        channels = ",".join(str(v) for v in self.value)
        if opacity is None:
            return f"rgba({channels})"
        return f"rgba({channels}, {opacity})"

    def as_color(self) -> Color:
        return Color.from_values(self.value)


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: NotificationLevel
    message: str


class BrokerEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    scheme: str = "ws"
    host: str = "localhost"
    port: int = 8083
    path: str = PANEL_WEBSOCKET_PATH

    @field_validator("scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        scheme = value.casefold()
        if scheme not in _SCHEMES:
            msg = f"unsupported MQTT scheme: {value}"
            raise ValueError(msg)
        return scheme

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"

    @property
    def transport(self) -> Literal["tcp", "websockets"]:
        return "websockets" if self.scheme in ("ws", "wss") else "tcp"

    @property
    def use_tls(self) -> bool:
        return self.scheme in ("wss", "mqtts", "ssl")


@functools.cache
def process_client_id(prefix: str = PANEL_CLIENT_ID_PREFIX) -> str:
    """Client identifier for this process: prefix plus 6 random hex chars, fixed for the process."""
    return f"{prefix}{secrets.token_hex(3)}"


class ConnectOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str
    protocol_id: str = "MQTT"
    protocol_version: int = 5
    username: str | None = None
    password: str | None = None
    keepalive: int = 60


class PanelEnv(BaseModel):
    """Process configuration, read once at startup."""

    mqtt_protocol: str = "ws"
    mqtt_addr: str = "localhost"
    mqtt_port: int = 8083
    mqtt_user: str | None = None
    mqtt_pass: str | None = None
    client_id_prefix: str = "light_panel_"
    scene_topic: str = "vl/dmx/wawasan/rx"
    save_topic: str = "lampu"
    on_topic: str = "on"
    off_topic: str = "off"
    delivery_policy: DeliveryPolicy = DeliveryPolicy.AWAIT
    connect_timeout: float = 10.0
    busy_seconds: float = 40.0
    scene_file: str | None = None

    @classmethod
    def from_environ(cls) -> PanelEnv:
        """Snapshot PANEL_* variables; call after any .env file has been loaded."""
        env = os.environ
        policy = env.get("PANEL_DELIVERY_POLICY", PANEL_DELIVERY_POLICY).casefold()
        return cls(
            mqtt_protocol=env.get("PANEL_MQTT_PROTOCOL", PANEL_MQTT_PROTOCOL),
            mqtt_addr=env.get("PANEL_MQTT_ADDR", PANEL_MQTT_ADDR),
            mqtt_port=env_int("PANEL_MQTT_PORT", PANEL_MQTT_PORT),
            mqtt_user=env.get("PANEL_MQTT_USER") or PANEL_MQTT_USER,
            mqtt_pass=env.get("PANEL_MQTT_PASS") or PANEL_MQTT_PASS,
            client_id_prefix=env.get("PANEL_CLIENT_ID_PREFIX", PANEL_CLIENT_ID_PREFIX),
            scene_topic=env.get("PANEL_SCENE_TOPIC", PANEL_SCENE_TOPIC),
            save_topic=env.get("PANEL_SAVE_TOPIC", PANEL_SAVE_TOPIC),
            on_topic=env.get("PANEL_ON_TOPIC", PANEL_ON_TOPIC),
            off_topic=env.get("PANEL_OFF_TOPIC", PANEL_OFF_TOPIC),
            delivery_policy=DeliveryPolicy(policy) if policy in ("await", "drop") else DeliveryPolicy.AWAIT,
            connect_timeout=env_float("PANEL_CONNECT_TIMEOUT", PANEL_CONNECT_TIMEOUT),
            busy_seconds=env_float("PANEL_BUSY_SECONDS", PANEL_BUSY_SECONDS),
            scene_file=env.get("PANEL_SCENE_FILE") or PANEL_SCENE_FILE,
        )

    @property
    def endpoint(self) -> BrokerEndpoint:
        return BrokerEndpoint(scheme=self.mqtt_protocol, host=self.mqtt_addr, port=self.mqtt_port)

    @property
    def connect_options(self) -> ConnectOptions:
        return ConnectOptions(
            client_id=process_client_id(self.client_id_prefix),
            username=self.mqtt_user,
            password=self.mqtt_pass,
        )
