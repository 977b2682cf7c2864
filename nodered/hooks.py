"""
Node-RED Wrapper - Extension Points

Converters translate caller-specific workflow objects to and from
FlowDefinition. Execution handlers run around every flow execution.
Both are plugged into NodeRedWrapper at construction or later through its
setters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Dict

from nodered.exceptions import ConversionError
from nodered.models import ExecutionResult, FlowDefinition


class WorkflowConverter(ABC):
    """Translate between an external workflow format and FlowDefinition."""

    @abstractmethod
    def to_target_format(self, workflow: Any) -> FlowDefinition:
        """
        Convert an external workflow into a flow.

        Raises:
            ConversionError: If the workflow cannot be converted
        """
        pass

    @abstractmethod
    def from_target_format(self, flow: FlowDefinition) -> Any:
        """
        Convert a flow back into the external workflow format.

        Raises:
            ConversionError: If the flow cannot be converted
        """
        pass


class ExecutionHandler(ABC):
    """
    Hooks invoked around a flow execution.

    Hooks run sequentially on the calling thread. Raising from a hook
    signals failure.
    """

    @abstractmethod
    def pre_execute(self, input: Dict[str, Any]) -> None:
        """Called with the execution input before the request is sent."""
        pass

    @abstractmethod
    def post_execute(self, result: ExecutionResult) -> None:
        """Called with the result, duration already set, after a successful request."""
        pass

    @abstractmethod
    def on_error(self, error: Exception) -> None:
        """Called with the transport error when the execution request fails."""
        pass


# Keys copied from a plain mapping by DefaultConverter
_MAPPING_KEYS = ("id", "name", "description", "version")


class DefaultConverter(WorkflowConverter):
    """
    Converter accepting FlowDefinition objects or plain mappings.

    A FlowDefinition is returned unchanged. A mapping contributes its
    ``id``, ``name``, ``description`` and ``version`` entries when they are
    strings; everything else keeps its default.
    """

    def to_target_format(self, workflow: Any) -> FlowDefinition:
        if isinstance(workflow, FlowDefinition):
            return workflow

        if isinstance(workflow, Mapping):
            values = {
                key: workflow[key]
                for key in _MAPPING_KEYS
                if isinstance(workflow.get(key), str)
            }
            return FlowDefinition(id=values.pop("id", ""), **values)

        type_name = type(workflow).__name__
        raise ConversionError(
            f"unsupported workflow type: {type_name}",
            received_type=type_name,
        )

    def from_target_format(self, flow: FlowDefinition) -> Any:
        if flow is None:
            raise ConversionError("flow is required")
        return flow


class DefaultExecutor(ExecutionHandler):
    """Execution handler whose hooks do nothing."""

    def pre_execute(self, input: Dict[str, Any]) -> None:
        return None

    def post_execute(self, result: ExecutionResult) -> None:
        return None

    def on_error(self, error: Exception) -> None:
        return None
