import os

from light_panel import __version__

__all__ = [
    "DEFAULT_COLOR_VALUES",
    "DEFAULT_FIXTURE_COUNT",
    "FOREIGN_LOGGERS",
    "PANEL_BUSY_SECONDS",
    "PANEL_CLIENT_ID_PREFIX",
    "PANEL_CONNECT_TIMEOUT",
    "PANEL_DEBUG",
    "PANEL_DELIVERY_POLICY",
    "PANEL_LOG_FORMAT",
    "PANEL_LOG_HUMAN_OUTPUT",
    "PANEL_LOG_JSON_FILE",
    "PANEL_LOG_NAME",
    "PANEL_MQTT_ADDR",
    "PANEL_MQTT_PASS",
    "PANEL_MQTT_PORT",
    "PANEL_MQTT_PROTOCOL",
    "PANEL_MQTT_USER",
    "PANEL_OFF_TOPIC",
    "PANEL_ON_TOPIC",
    "PANEL_SAVE_TOPIC",
    "PANEL_SCENE_FILE",
    "PANEL_SCENE_TOPIC",
    "PANEL_VERSION",
    "PANEL_WEBSOCKET_PATH",
    "YES_ANSWER",
    "env_float",
    "env_int",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
PANEL_LOG_NAME: str = "light_panel"
PANEL_VERSION: str = __version__

# third-party loggers capped at WARNING
FOREIGN_LOGGERS: tuple[str, ...] = ("aiomqtt", "paho", "mqtt")


def env_int(name: str, default: int) -> int:
    """Integer from the environment; unset or unparseable values give `default`."""
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


PANEL_DEBUG: bool = os.environ.get("PANEL_DEBUG", "0").casefold() in YES_ANSWER
PANEL_LOG_FORMAT: str = os.environ.get("PANEL_LOG_FORMAT", "human").casefold()
PANEL_LOG_JSON_FILE: str | None = os.environ.get("PANEL_LOG_JSON_FILE") or None
PANEL_LOG_HUMAN_OUTPUT: str = os.environ.get("PANEL_LOG_HUMAN_OUTPUT", "stdout")

# Broker endpoint: {protocol}://{addr}:{port}/mqtt
PANEL_MQTT_PROTOCOL: str = os.environ.get("PANEL_MQTT_PROTOCOL", "ws").casefold()
PANEL_MQTT_ADDR: str = os.environ.get("PANEL_MQTT_ADDR", "localhost")
PANEL_MQTT_PORT: int = env_int("PANEL_MQTT_PORT", 8083)
PANEL_WEBSOCKET_PATH: str = "/mqtt"
_user = os.environ.get("PANEL_MQTT_USER")
PANEL_MQTT_USER: str | None = _user if _user else None
_pass = os.environ.get("PANEL_MQTT_PASS")
PANEL_MQTT_PASS: str | None = _pass if _pass else None
PANEL_CLIENT_ID_PREFIX: str = os.environ.get("PANEL_CLIENT_ID_PREFIX", "light_panel_")

PANEL_SCENE_TOPIC: str = os.environ.get("PANEL_SCENE_TOPIC", "vl/dmx/wawasan/rx")
PANEL_SAVE_TOPIC: str = os.environ.get("PANEL_SAVE_TOPIC", "lampu")
PANEL_ON_TOPIC: str = os.environ.get("PANEL_ON_TOPIC", "on")
PANEL_OFF_TOPIC: str = os.environ.get("PANEL_OFF_TOPIC", "off")

PANEL_DELIVERY_POLICY: str = os.environ.get("PANEL_DELIVERY_POLICY", "await").casefold()
PANEL_CONNECT_TIMEOUT: float = env_float("PANEL_CONNECT_TIMEOUT", 10.0)
PANEL_BUSY_SECONDS: float = env_float("PANEL_BUSY_SECONDS", 40.0)
PANEL_SCENE_FILE: str | None = os.environ.get("PANEL_SCENE_FILE") or None

DEFAULT_FIXTURE_COUNT: int = 4
DEFAULT_COLOR_VALUES: tuple[int, int, int, int] = (0, 0, 0, 255)
