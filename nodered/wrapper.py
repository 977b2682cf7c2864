"""
Node-RED Wrapper - High-level Interface

This module provides NodeRedWrapper, the main entry point of the library.
It validates input, delegates to NodeRedClient and runs the configured
converter and execution handler around the requests.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from nodered.client import NodeRedClient
from nodered.config import ClientConfig
from nodered.exceptions import (
    ConfigurationError,
    ConversionError,
    HookError,
    NodeRedError,
    ValidationError,
)
from nodered.hooks import (
    DefaultConverter,
    DefaultExecutor,
    ExecutionHandler,
    WorkflowConverter,
)
from nodered.models import AuthToken, ExecutionResult, FlowDefinition

logger = logging.getLogger("nodered")


class NodeRedWrapper:
    """
    High-level interface for managing Node-RED workflows.

    Args:
        config: Client configuration
        converter: Converter used by the ``*_workflow`` methods. Defaults
            to DefaultConverter.
        executor: Execution handler run around every execution. Defaults
            to DefaultExecutor.

    Example:
        >>> wrapper = NodeRedWrapper(ClientConfig(base_url="http://localhost:1880"))
        >>> wrapper.deploy_flow(flow)
        >>> result = wrapper.execute_flow(flow.id, {"message": "hello"})
        >>> print(result.success, result.duration)
    """

    def __init__(
        self,
        config: Optional[ClientConfig],
        converter: Optional[WorkflowConverter] = None,
        executor: Optional[ExecutionHandler] = None,
    ) -> None:
        if config is None:
            raise ConfigurationError("config is required")

        self._config = config
        self._client = NodeRedClient(config)
        self._converter: WorkflowConverter = converter or DefaultConverter()
        self._executor: ExecutionHandler = executor or DefaultExecutor()

    @property
    def config(self) -> ClientConfig:
        """The configuration the wrapper was created with."""
        return self._config

    @property
    def client(self) -> NodeRedClient:
        return self._client

    @property
    def converter(self) -> WorkflowConverter:
        return self._converter

    @property
    def executor(self) -> ExecutionHandler:
        return self._executor

    def set_converter(self, converter: Optional[WorkflowConverter]) -> None:
        """Replace the converter. ``None`` leaves the current one in place."""
        if converter is not None:
            self._converter = converter

    def set_executor(self, executor: Optional[ExecutionHandler]) -> None:
        """Replace the execution handler. ``None`` leaves the current one in place."""
        if executor is not None:
            self._executor = executor

    # =========================================================================
    # Flows
    # =========================================================================

    def deploy_flow(self, flow: Optional[FlowDefinition]) -> None:
        """
        Deploy a flow to Node-RED.

        Raises:
            ValidationError: If the flow or its id is missing
            APIError: If Node-RED rejects the deployment
        """
        if flow is None:
            raise ValidationError("flow is required", field="flow")
        if not flow.id:
            raise ValidationError("flow ID is required", field="id")

        self._client.deploy_flow(flow)

    def execute_flow(
        self,
        flow_id: str,
        input: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Execute a deployed flow.

        The execution handler's ``pre_execute`` runs first; if it fails the
        request is never sent. When the request fails, ``on_error`` is
        called with the error before it is re-raised. On success the
        locally measured duration is set on the result and
        ``post_execute`` runs before it is returned.

        Raises:
            ValidationError: If ``flow_id`` is empty
            HookError: If a hook fails
            NodeRedError: If the execution request fails
        """
        if not flow_id:
            raise ValidationError("flow ID is required", field="flow_id")

        input = input if input is not None else {}

        try:
            self._executor.pre_execute(input)
        except Exception as e:
            logger.warning(f"Pre-execution hook failed for flow {flow_id}: {e}")
            raise HookError(f"pre-execution failed: {e}", stage="pre-execution") from e

        start = time.monotonic()
        try:
            result = self._client.execute_flow(flow_id, input)
        except NodeRedError as err:
            try:
                self._executor.on_error(err)
            except Exception as handler_err:
                logger.warning(f"Error handler failed for flow {flow_id}: {handler_err}")
                raise HookError(
                    f"execution failed and error handler failed: {handler_err} "
                    f"(original error: {err})",
                    stage="error-handler",
                    original_error=err,
                ) from handler_err
            raise

        result.duration = time.monotonic() - start

        try:
            self._executor.post_execute(result)
        except Exception as e:
            logger.warning(f"Post-execution hook failed for flow {flow_id}: {e}")
            raise HookError(f"post-execution failed: {e}", stage="post-execution") from e

        return result

    def get_flow(self, flow_id: str) -> FlowDefinition:
        """
        Retrieve a deployed flow.

        Raises:
            ValidationError: If ``flow_id`` is empty
            NotFoundError: If the flow does not exist
        """
        if not flow_id:
            raise ValidationError("flow ID is required", field="flow_id")

        return self._client.get_flow(flow_id)

    def delete_flow(self, flow_id: str) -> None:
        """
        Remove a flow from Node-RED.

        Raises:
            ValidationError: If ``flow_id`` is empty
            NotFoundError: If the flow does not exist
        """
        if not flow_id:
            raise ValidationError("flow ID is required", field="flow_id")

        self._client.delete_flow(flow_id)

    def health_check(self) -> None:
        """Check that Node-RED is healthy."""
        self._client.health_check()

    def authenticate(self, username: str, password: str) -> AuthToken:
        """Obtain an access token and use it for subsequent requests."""
        return self._client.authenticate(username, password)

    # =========================================================================
    # Workflows
    # =========================================================================

    def deploy_workflow(self, workflow: Any) -> None:
        """
        Convert a workflow with the active converter and deploy it.

        Raises:
            ConversionError: If the workflow cannot be converted
        """
        flow = self._convert(workflow)
        self.deploy_flow(flow)

    def execute_workflow(
        self,
        workflow: Any,
        input: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Convert a workflow with the active converter and execute its flow.

        Raises:
            ConversionError: If the workflow cannot be converted
        """
        flow = self._convert(workflow)
        return self.execute_flow(flow.id, input)

    def convert_from_flow(self, flow: FlowDefinition) -> Any:
        """Convert a flow back into the active converter's workflow format."""
        try:
            return self._converter.from_target_format(flow)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"failed to convert flow: {e}") from e

    def _convert(self, workflow: Any) -> FlowDefinition:
        if workflow is None:
            raise ValidationError("workflow is required", field="workflow")

        try:
            flow = self._converter.to_target_format(workflow)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(
                f"failed to convert workflow: {e}",
                received_type=type(workflow).__name__,
            ) from e

        if flow is None:
            raise ConversionError(
                "converter returned no flow",
                received_type=type(workflow).__name__,
            )
        return flow

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()

    def __enter__(self) -> "NodeRedWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"NodeRedWrapper(base_url='{self._config.base_url}')"
