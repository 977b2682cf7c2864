"""
Unit Tests for NodeRedWrapper

Tests input validation, converter routing and the execution hook sequence.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import httpx
import pytest

from nodered import (
    APIError,
    ClientConfig,
    ConfigurationError,
    ConversionError,
    DecodeError,
    DefaultConverter,
    DefaultExecutor,
    ExecutionHandler,
    ExecutionResult,
    FlowDefinition,
    HookError,
    Node,
    NodeRedWrapper,
    NotFoundError,
    TransportError,
    ValidationError,
    WorkflowConverter,
)


class RecordingExecutor(ExecutionHandler):
    """Execution handler recording every hook call, optionally failing."""

    def __init__(self, calls: List[str], fail_on: str = "") -> None:
        self.calls = calls
        self.fail_on = fail_on

    def _record(self, stage: str) -> None:
        self.calls.append(stage)
        if stage == self.fail_on:
            raise RuntimeError(f"{stage} hook failed")

    def pre_execute(self, input):
        self._record("pre")

    def post_execute(self, result):
        self.result = result
        self._record("post")

    def on_error(self, error):
        self.error = error
        self._record("error")


@dataclass
class DeviceWorkflow:
    """Workflow shape of an external automation system."""
    uuid: str
    name: str
    steps: List[Dict[str, Any]] = field(default_factory=list)


class DeviceWorkflowConverter(WorkflowConverter):
    """Turns device workflow steps into a chain of function nodes."""

    def to_target_format(self, workflow):
        if not isinstance(workflow, DeviceWorkflow):
            raise ConversionError(
                f"expected DeviceWorkflow, got {type(workflow).__name__}",
                received_type=type(workflow).__name__,
            )
        nodes = [Node(id="trigger-0", type="inject", name="Trigger")]
        for i, step in enumerate(workflow.steps):
            nodes[-1].wires = [[f"step-{i}"]]
            nodes.append(Node(id=f"step-{i}", type="function", properties=dict(step)))
        return FlowDefinition(id=workflow.uuid, name=workflow.name, nodes=nodes)

    def from_target_format(self, flow):
        steps = [node.properties for node in flow.nodes if node.type == "function"]
        return DeviceWorkflow(uuid=flow.id, name=flow.name, steps=steps)


@pytest.fixture
def execute_route(mock_api):
    return mock_api.post("/flows/test-flow/execute").mock(
        return_value=httpx.Response(200, json={"execution_id": "exec-1", "success": True})
    )


# =============================================================================
# Construction Tests
# =============================================================================


class TestConstruction:
    """Tests for wrapper construction."""

    def test_valid_config(self, config):
        with NodeRedWrapper(config) as wrapper:
            assert wrapper.config is config
            assert isinstance(wrapper.converter, DefaultConverter)
            assert isinstance(wrapper.executor, DefaultExecutor)

    def test_missing_config(self):
        with pytest.raises(ConfigurationError, match="config is required"):
            NodeRedWrapper(None)

    def test_empty_base_url(self):
        with pytest.raises(ConfigurationError):
            NodeRedWrapper(ClientConfig(base_url=""))

    def test_custom_extensions(self, config):
        converter = DeviceWorkflowConverter()
        executor = RecordingExecutor([])

        with NodeRedWrapper(config, converter=converter, executor=executor) as wrapper:
            assert wrapper.converter is converter
            assert wrapper.executor is executor

    def test_setters(self, wrapper):
        converter = DeviceWorkflowConverter()
        executor = RecordingExecutor([])

        wrapper.set_converter(converter)
        wrapper.set_executor(executor)

        assert wrapper.converter is converter
        assert wrapper.executor is executor

    def test_setters_ignore_none(self, wrapper):
        converter = wrapper.converter
        executor = wrapper.executor

        wrapper.set_converter(None)
        wrapper.set_executor(None)

        assert wrapper.converter is converter
        assert wrapper.executor is executor


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Invalid input is rejected before any request is made."""

    def test_deploy_missing_flow(self, wrapper, mock_api):
        with pytest.raises(ValidationError, match="flow is required"):
            wrapper.deploy_flow(None)

        assert mock_api.calls.call_count == 0

    def test_deploy_empty_flow_id(self, wrapper, mock_api):
        with pytest.raises(ValidationError, match="flow ID is required"):
            wrapper.deploy_flow(FlowDefinition(id="", name="Test Flow"))

        assert mock_api.calls.call_count == 0

    @pytest.mark.parametrize("method", ["execute_flow", "get_flow", "delete_flow"])
    def test_empty_flow_id(self, wrapper, mock_api, method):
        with pytest.raises(ValidationError, match="flow ID is required"):
            getattr(wrapper, method)("")

        assert mock_api.calls.call_count == 0

    def test_deploy_workflow_missing(self, wrapper, mock_api):
        with pytest.raises(ValidationError, match="workflow is required"):
            wrapper.deploy_workflow(None)

        assert mock_api.calls.call_count == 0


# =============================================================================
# Delegation Tests
# =============================================================================


class TestDelegation:
    """Tests for operations delegated to the client."""

    def test_deploy_flow(self, wrapper, mock_api, sample_flow):
        route = mock_api.put("/flow/test-flow").mock(return_value=httpx.Response(200))

        wrapper.deploy_flow(sample_flow)

        assert route.call_count == 1

    def test_get_flow(self, wrapper, mock_api):
        mock_api.get("/flows/test-flow").mock(
            return_value=httpx.Response(200, json={"id": "test-flow", "name": "Test Flow"})
        )

        assert wrapper.get_flow("test-flow").name == "Test Flow"

    def test_get_missing_flow(self, wrapper, mock_api):
        mock_api.get("/flows/nope").mock(return_value=httpx.Response(404))

        with pytest.raises(NotFoundError):
            wrapper.get_flow("nope")

    def test_delete_missing_flow(self, wrapper, mock_api):
        mock_api.delete("/flows/nope").mock(return_value=httpx.Response(404))

        with pytest.raises(NotFoundError):
            wrapper.delete_flow("nope")

    def test_health_check(self, wrapper, mock_api):
        mock_api.get("/health").mock(return_value=httpx.Response(500))

        with pytest.raises(APIError):
            wrapper.health_check()

    def test_authenticate(self, wrapper, mock_api):
        mock_api.post("/auth/token").mock(
            return_value=httpx.Response(200, json={"access_token": "tok"})
        )

        token = wrapper.authenticate("admin", "secret")

        assert token.access_token == "tok"
        assert wrapper.client.api_key == "tok"


# =============================================================================
# Execution Hook Tests
# =============================================================================


class TestExecuteFlow:
    """Tests for the execution hook sequence."""

    def test_hook_order(self, config, mock_api):
        """pre-hook, request and post-hook run in sequence."""
        calls: List[str] = []

        def respond(request):
            calls.append("request")
            return httpx.Response(200, json={"execution_id": "exec-1", "success": True})

        mock_api.post("/flows/test-flow/execute").mock(side_effect=respond)
        executor = RecordingExecutor(calls)

        with NodeRedWrapper(config, executor=executor) as wrapper:
            result = wrapper.execute_flow("test-flow", {"message": "test"})

        assert calls == ["pre", "request", "post"]
        assert executor.result is result

    def test_duration_set(self, wrapper, execute_route):
        """The locally measured duration is set before post-hook runs."""
        result = wrapper.execute_flow("test-flow", {})

        assert isinstance(result, ExecutionResult)
        assert result.execution_id == "exec-1"
        assert result.duration > 0

    def test_pre_execute_failure_skips_request(self, config, execute_route):
        """A failing pre-hook aborts before the request is sent."""
        calls: List[str] = []

        with NodeRedWrapper(config, executor=RecordingExecutor(calls, fail_on="pre")) as wrapper:
            with pytest.raises(HookError) as exc_info:
                wrapper.execute_flow("test-flow", {})

        assert exc_info.value.stage == "pre-execution"
        assert "pre-execution failed" in str(exc_info.value)
        assert calls == ["pre"]
        assert not execute_route.called

    def test_pre_execute_failure_skips_transport(self, wrapper):
        """The client is never invoked when the pre-hook fails."""
        executor = MagicMock(spec=ExecutionHandler)
        executor.pre_execute.side_effect = ValueError("bad input")
        wrapper.set_executor(executor)

        with patch.object(wrapper.client, "execute_flow") as execute:
            with pytest.raises(HookError):
                wrapper.execute_flow("test-flow", {"x": 1})

        execute.assert_not_called()
        executor.post_execute.assert_not_called()
        executor.on_error.assert_not_called()

    def test_post_execute_failure(self, config, execute_route):
        """A failing post-hook supersedes the result."""
        calls: List[str] = []

        with NodeRedWrapper(config, executor=RecordingExecutor(calls, fail_on="post")) as wrapper:
            with pytest.raises(HookError) as exc_info:
                wrapper.execute_flow("test-flow", {})

        assert exc_info.value.stage == "post-execution"
        assert calls == ["pre", "post"]

    def test_transport_error_calls_error_hook(self, config, mock_api):
        """The error hook sees the transport error, which is re-raised."""
        mock_api.post("/flows/test-flow/execute").mock(side_effect=httpx.ConnectError)
        calls: List[str] = []
        executor = RecordingExecutor(calls)

        with NodeRedWrapper(config, executor=executor) as wrapper:
            with pytest.raises(TransportError) as exc_info:
                wrapper.execute_flow("test-flow", {})

        assert calls == ["pre", "error"]
        assert executor.error is exc_info.value

    def test_malformed_result_calls_error_hook(self, config, mock_api):
        """A result that fails to decode goes through the error hook."""
        mock_api.post("/flows/test-flow/execute").mock(
            return_value=httpx.Response(200, json={"success": True, "logs": ["line"]})
        )
        calls: List[str] = []
        executor = RecordingExecutor(calls)

        with NodeRedWrapper(config, executor=executor) as wrapper:
            with pytest.raises(DecodeError) as exc_info:
                wrapper.execute_flow("test-flow", {})

        assert calls == ["pre", "error"]
        assert executor.error is exc_info.value

    def test_error_hook_failure_combines_errors(self, config, mock_api):
        """A failing error hook produces an error naming both failures."""
        mock_api.post("/flows/test-flow/execute").mock(
            return_value=httpx.Response(502, text="Bad Gateway")
        )
        calls: List[str] = []

        with NodeRedWrapper(config, executor=RecordingExecutor(calls, fail_on="error")) as wrapper:
            with pytest.raises(HookError) as exc_info:
                wrapper.execute_flow("test-flow", {})

        err = exc_info.value
        assert err.stage == "error-handler"
        assert isinstance(err.original_error, APIError)
        assert "error hook failed" in str(err)
        assert "502" in str(err)
        assert calls == ["pre", "error"]

    def test_none_input_sent_as_empty_object(self, wrapper, execute_route):
        wrapper.execute_flow("test-flow")

        assert execute_route.calls.last.request.content == b"{}"


# =============================================================================
# Workflow Tests
# =============================================================================


class TestWorkflows:
    """Tests for converter-backed operations."""

    def test_deploy_mapping_workflow(self, wrapper, mock_api):
        """The default converter deploys plain mappings."""
        route = mock_api.put("/flow/wf-1").mock(return_value=httpx.Response(200))

        wrapper.deploy_workflow({"id": "wf-1", "name": "Workflow"})

        assert route.call_count == 1

    def test_deploy_unsupported_workflow(self, wrapper, mock_api):
        """Conversion failures are distinct from deployment failures."""
        with pytest.raises(ConversionError, match="unsupported workflow type: str"):
            wrapper.deploy_workflow("invalid")

        assert mock_api.calls.call_count == 0

    def test_converted_flow_still_validated(self, wrapper, mock_api):
        """A converted flow without an id is rejected."""
        with pytest.raises(ValidationError):
            wrapper.deploy_workflow({"name": "no id"})

        assert mock_api.calls.call_count == 0

    def test_converter_exception_wrapped(self, config, mock_api):
        converter = MagicMock(spec=WorkflowConverter)
        converter.to_target_format.side_effect = KeyError("uuid")

        with NodeRedWrapper(config, converter=converter) as wrapper:
            with pytest.raises(ConversionError, match="failed to convert workflow"):
                wrapper.deploy_workflow({"any": "thing"})

        assert mock_api.calls.call_count == 0

    def test_custom_converter(self, config, mock_api):
        """A custom converter's flow is deployed and executed."""
        deploy = mock_api.put("/flow/wf-42").mock(return_value=httpx.Response(200))
        execute = mock_api.post("/flows/wf-42/execute").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        workflow = DeviceWorkflow(
            uuid="wf-42",
            name="Temperature Control",
            steps=[{"func": "return msg;"}],
        )

        with NodeRedWrapper(config, converter=DeviceWorkflowConverter()) as wrapper:
            wrapper.deploy_workflow(workflow)
            result = wrapper.execute_workflow(workflow, {"temperature": 30.5})

        assert deploy.call_count == 1
        assert execute.call_count == 1
        assert result.success is True

    def test_convert_from_flow(self, config):
        flow = FlowDefinition(
            id="wf-42",
            name="Temperature Control",
            nodes=[Node(id="step-0", type="function", properties={"func": "return msg;"})],
        )

        with NodeRedWrapper(config, converter=DeviceWorkflowConverter()) as wrapper:
            workflow = wrapper.convert_from_flow(flow)

        assert workflow == DeviceWorkflow(
            uuid="wf-42",
            name="Temperature Control",
            steps=[{"func": "return msg;"}],
        )
