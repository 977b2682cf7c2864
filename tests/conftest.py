"""Shared pytest fixtures for testing."""

import pytest
import respx

from nodered import ClientConfig, FlowDefinition, Node, NodeRedClient, NodeRedWrapper, Position

BASE_URL = "http://nodered.test:1880"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def config() -> ClientConfig:
    """Client configuration pointing at the mocked Node-RED instance."""
    return ClientConfig(base_url=BASE_URL, timeout=5.0)


@pytest.fixture
def token_config() -> ClientConfig:
    """Client configuration carrying a bearer token."""
    return ClientConfig(base_url=BASE_URL, api_key="test-key", timeout=5.0)


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def client(config):
    """Transport client, closed after the test."""
    with NodeRedClient(config) as c:
        yield c


@pytest.fixture
def wrapper(config):
    """Wrapper with the default converter and executor."""
    with NodeRedWrapper(config) as w:
        yield w


@pytest.fixture
def mock_api():
    """Mocked Node-RED admin API; routes are registered per test."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


# =============================================================================
# Flow Fixtures
# =============================================================================


@pytest.fixture
def sample_flow() -> FlowDefinition:
    """Three-node inject -> function -> debug flow."""
    return FlowDefinition(
        id="test-flow",
        name="Test Flow",
        description="A flow used in tests",
        version="1.0.0",
        nodes=[
            Node(
                id="inject-1",
                type="inject",
                name="Start",
                position=Position(x=100, y=100),
                properties={"payload": "", "payloadType": "json"},
                wires=[["function-1"]],
            ),
            Node(
                id="function-1",
                type="function",
                name="Process",
                position=Position(x=300, y=100),
                properties={"func": "return msg;", "outputs": 1},
                wires=[["debug-1"]],
            ),
            Node(
                id="debug-1",
                type="debug",
                name="Log",
                position=Position(x=500, y=100),
                properties={"complete": "payload"},
            ),
        ],
    )
