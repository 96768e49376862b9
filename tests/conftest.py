"""
Shared pytest fixtures for the MISP Bridge test suite.

No test reaches a real MISP instance: every client is wired to a
``FakeMisp`` through ``httpx.MockTransport``.
"""

import pytest

from fake_misp import API_KEY, MISP_URL, FakeMisp
from misp_bridge.client import HttpTransport, MispClient
from misp_bridge.config import MispConfig


@pytest.fixture
def config():
    return MispConfig(url=MISP_URL, api_key=API_KEY, timeout=5.0)


@pytest.fixture
def fake_misp():
    return FakeMisp()


@pytest.fixture
def client(config, fake_misp):
    transport = HttpTransport(timeout=config.timeout, transport=fake_misp.transport())
    return MispClient(config, transport=transport)
