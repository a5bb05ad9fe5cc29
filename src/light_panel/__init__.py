"""MQTT control panel for DMX light fixtures and scenes."""

__version__ = "0.3.0"
