"""
Node-RED Wrapper - Data Models

This module contains the data models exchanged with the Node-RED admin API.
Models are implemented as dataclasses with a shared dict/JSON mixin.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any
import json


class BaseModel:
    """Base class for all models with common functionality."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return asdict(self)

    def to_json(self) -> str:
        """Convert model to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseModel":
        """Create model instance from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; empty values and zero times become None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.year == 1:
        return None
    return parsed


# =============================================================================
# Flow Models
# =============================================================================

@dataclass
class Position(BaseModel):
    """Node position in the flow editor. Layout only."""
    x: float = 0.0
    y: float = 0.0


@dataclass
class Connection(BaseModel):
    """Edge between two nodes, an alternative to writing ``Node.wires``."""
    source: str
    target: str
    source_port: int = 0
    target_port: int = 0


@dataclass
class Node(BaseModel):
    """
    A single Node-RED node.

    ``properties`` are flattened into the node object on deployment; their
    meaning depends entirely on ``type``. ``wires`` holds, per output port,
    the ids of the downstream nodes.
    """
    id: str
    type: str
    name: str = ""
    position: Position = field(default_factory=Position)
    properties: Dict[str, Any] = field(default_factory=dict)
    wires: List[List[str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        position = data.get("position") or {}
        if not isinstance(position, Position):
            position = Position.from_dict(position)
        return cls(
            id=data["id"],
            type=data.get("type", ""),
            name=data.get("name") or "",
            position=position,
            properties=dict(data.get("properties") or {}),
            wires=[list(port) for port in data.get("wires") or []],
        )


@dataclass
class FlowDefinition(BaseModel):
    """
    A deployable Node-RED flow (one editor tab).

    ``id`` is assigned by the caller and must be set before the flow is
    sent anywhere; Node-RED enforces uniqueness.
    """
    id: str
    name: str = ""
    label: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    info: Optional[str] = None
    disabled: bool = False
    nodes: List[Node] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowDefinition":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            label=data.get("label"),
            version=data.get("version"),
            description=data.get("description"),
            info=data.get("info"),
            disabled=bool(data.get("disabled", False)),
            nodes=[Node.from_dict(n) for n in data.get("nodes") or []],
            connections=[Connection.from_dict(c) for c in data.get("connections") or []],
            metadata=dict(data.get("metadata") or {}),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    def get_node(self, node_id: str) -> Optional[Node]:
        """Return the node with the given id, if present."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def derive_connections(self) -> List[Connection]:
        """Build the connection list described by the nodes' wires."""
        connections = []
        for node in self.nodes:
            for port, targets in enumerate(node.wires):
                for target in targets:
                    connections.append(
                        Connection(source=node.id, target=target, source_port=port)
                    )
        return connections


# =============================================================================
# Execution Models
# =============================================================================

@dataclass
class LogEntry(BaseModel):
    """Log line emitted by a node during execution."""
    level: str = "info"
    message: str = ""
    time: Optional[datetime] = None
    node_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        return cls(
            level=data.get("level", "info"),
            message=data.get("message", ""),
            time=_parse_datetime(data.get("time")),
            node_id=data.get("node_id"),
        )


@dataclass
class ExecutionResult(BaseModel):
    """
    Outcome of a flow execution as reported by Node-RED.

    ``duration`` is measured locally, in seconds, around the request.
    """
    execution_id: str = ""
    success: bool = False
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    duration: float = 0.0
    logs: List[LogEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionResult":
        return cls(
            execution_id=data.get("execution_id") or "",
            success=bool(data.get("success", False)),
            output=dict(data.get("output") or {}),
            error=data.get("error") or None,
            logs=[LogEntry.from_dict(entry) for entry in data.get("logs") or []],
        )


@dataclass
class AuthToken(BaseModel):
    """Access token issued by the admin auth endpoint."""
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 0
