"""
Node-RED Wrapper

A Python client for the Node-RED admin HTTP API. Deploys, executes,
retrieves and deletes flows, with optional bearer-token authentication and
pluggable converters and execution hooks.

Example:
    >>> from nodered import ClientConfig, FlowDefinition, Node, NodeRedWrapper
    >>> wrapper = NodeRedWrapper(ClientConfig(base_url="http://localhost:1880"))
    >>> flow = FlowDefinition(
    ...     id="example-flow",
    ...     name="Example",
    ...     nodes=[Node(id="inject-1", type="inject", wires=[["debug-1"]]),
    ...            Node(id="debug-1", type="debug")],
    ... )
    >>> wrapper.deploy_flow(flow)
"""

__version__ = "1.0.0"
__license__ = "MIT"

from nodered.config import ClientConfig, DEFAULT_CONFIG, Endpoints
from nodered.client import NodeRedClient
from nodered.wrapper import NodeRedWrapper
from nodered.translator import FlowTranslator, RESERVED_NODE_KEYS
from nodered.hooks import (
    WorkflowConverter,
    ExecutionHandler,
    DefaultConverter,
    DefaultExecutor,
)
from nodered.models import (
    FlowDefinition,
    Node,
    Connection,
    Position,
    ExecutionResult,
    LogEntry,
    AuthToken,
)
from nodered.exceptions import (
    NodeRedError,
    ConfigurationError,
    ValidationError,
    APIError,
    NotFoundError,
    AuthenticationError,
    TransportError,
    TimeoutError,
    DecodeError,
    ConversionError,
    HookError,
)

__all__ = [
    # Entry points
    "NodeRedWrapper",
    "NodeRedClient",
    "ClientConfig",
    "DEFAULT_CONFIG",
    "Endpoints",

    # Translation and extension points
    "FlowTranslator",
    "RESERVED_NODE_KEYS",
    "WorkflowConverter",
    "ExecutionHandler",
    "DefaultConverter",
    "DefaultExecutor",

    # Models
    "FlowDefinition",
    "Node",
    "Connection",
    "Position",
    "ExecutionResult",
    "LogEntry",
    "AuthToken",

    # Exceptions
    "NodeRedError",
    "ConfigurationError",
    "ValidationError",
    "APIError",
    "NotFoundError",
    "AuthenticationError",
    "TransportError",
    "TimeoutError",
    "DecodeError",
    "ConversionError",
    "HookError",
]
