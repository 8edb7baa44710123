# tests/conftest.py

import os
import random

import pytest
from fakes.fake_hub_transport import FakeHubTransport
from helpers import CapturingBus

from boost_host.core.client import HubClient
from boost_host.core.settings import HubSettings
from boost_host.transports.base_transport import DiscoveredHub

MOVE_HUB = DiscoveredHub(address="00:16:53:A4:CD:7E", name="LEGO Move Hub", rssi=-58)


# ============== Fixtures ==============

@pytest.fixture
def bus():
    return CapturingBus()


@pytest.fixture
def hub():
    return MOVE_HUB


@pytest.fixture
def transport(hub):
    return FakeHubTransport(hubs=[hub])


@pytest.fixture
def settings():
    s = HubSettings()
    s.transport.scan_timeout_s = 0.05
    s.autopilot.tick_s = 0.01
    return s


@pytest.fixture
def client(transport, settings, bus):
    return HubClient(transport, settings=settings, bus=bus, rng=random.Random(7))


# ============== Pytest Configuration ==============

def pytest_addoption(parser):
    parser.addoption("--hub-name", action="store", default=os.getenv("BOOST_HUB_NAME", ""))
    parser.addoption("--run-hil", action="store_true", default=False, help="Run HIL tests")
    parser.addoption("--hil-timeout", action="store", type=float, default=15.0, help="HIL scan timeout")


def pytest_configure(config):
    config.addinivalue_line("markers", "hil: hardware-in-the-loop tests (requires a powered hub in range)")
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "motion: tests that cause physical motion")


def pytest_collection_modifyitems(config, items):
    """Skip HIL tests unless --run-hil is specified."""
    if not config.getoption("--run-hil"):
        skip_hil = pytest.mark.skip(reason="Need --run-hil option to run HIL tests")
        for item in items:
            if "hil" in item.keywords:
                item.add_marker(skip_hil)


# ============== HIL Fixtures ==============

@pytest.fixture(scope="session")
def hub_name(request) -> str:
    return request.config.getoption("--hub-name")


@pytest.fixture(scope="session")
def hil_timeout(request) -> float:
    return request.config.getoption("--hil-timeout")


@pytest.fixture
async def live_client(hub_name, hil_timeout):
    """
    HubClient on the real BLE adapter, connected for the test.
    Motors are stopped and the link dropped on teardown.
    """
    from boost_host.transports.bleak_transport import BleakHubTransport

    s = HubSettings.load("default")
    s.transport.scan_timeout_s = hil_timeout
    s.transport.name_filter = hub_name or None
    client = HubClient(BleakHubTransport(), settings=s)

    ok = await client.connect()
    if not ok:
        pytest.skip(f"No hub available: {client.device_state.error}")

    try:
        yield client
    finally:
        await client.stop()
        await client.disconnect()
