"""
Shared fixtures for unit tests.

The aiomqtt client is replaced by a MagicMock whose async context manager
"connects" immediately (or fails / blocks when configured) and whose
message iterator parks until the test drops the connection.
"""

from unittest.mock import MagicMock

import pytest

from light_panel.mqtt.coordinator import ConnectionCoordinator
from light_panel.mqtt.dispatcher import CommandDispatcher, Topics
from light_panel.notifications import LogNotifier
from light_panel.scenes import SceneCatalog
from light_panel.store import DeviceStateStore
from light_panel.structs import BrokerEndpoint, ConnectOptions, DeliveryPolicy
from tests.helpers.mqtt_doubles import make_mqtt_client


@pytest.fixture
def notifier():
    return LogNotifier()


@pytest.fixture
def endpoint():
    return BrokerEndpoint(scheme="ws", host="broker.test", port=8083)


@pytest.fixture
def connect_options():
    return ConnectOptions(client_id="light_panel_a1b2c3")


@pytest.fixture
def mqtt_client():
    return make_mqtt_client()


@pytest.fixture
def client_factory(mqtt_client):
    return MagicMock(return_value=mqtt_client)


@pytest.fixture
def coordinator(endpoint, connect_options, notifier, client_factory):
    return ConnectionCoordinator(endpoint, connect_options, notifier, client_factory=client_factory)


@pytest.fixture
def store():
    return DeviceStateStore()


@pytest.fixture
def catalog():
    return SceneCatalog.load()


@pytest.fixture
def topics():
    return Topics(scene="vl/dmx/wawasan/rx", save="lampu", on="on", off="off")


@pytest.fixture
def dispatcher(coordinator, store, catalog, notifier, topics):
    return CommandDispatcher(
        coordinator,
        store,
        catalog,
        notifier,
        topics=topics,
        policy=DeliveryPolicy.AWAIT,
        connect_timeout=1.0,
    )


@pytest.fixture
def drop_dispatcher(coordinator, store, catalog, notifier, topics):
    return CommandDispatcher(
        coordinator,
        store,
        catalog,
        notifier,
        topics=topics,
        policy=DeliveryPolicy.DROP,
    )
