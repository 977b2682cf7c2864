"""
Node-RED Wrapper - Transport Client

This module provides the NodeRedClient class, which issues the individual
requests against the Node-RED admin HTTP API.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Dict, Any
from urllib.parse import quote

import httpx

from nodered import __version__
from nodered.config import (
    ClientConfig,
    Endpoints,
    AUTH_CLIENT_ID,
    AUTH_GRANT_TYPE,
    AUTH_SCOPE,
)
from nodered.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    DecodeError,
    NotFoundError,
    TimeoutError,
    TransportError,
)
from nodered.models import AuthToken, ExecutionResult, FlowDefinition
from nodered.translator import FlowTranslator

logger = logging.getLogger("nodered")

# Request body keys masked in debug logs
SENSITIVE_KEYS = frozenset({"password"})


def _redact(body: Any) -> Any:
    if not isinstance(body, dict):
        return body
    return {k: "***" if k in SENSITIVE_KEYS else v for k, v in body.items()}


class NodeRedClient:
    """
    Low-level client for the Node-RED admin API.

    Each method performs a single HTTP exchange and maps the response to a
    model or an exception. Nothing is retried at this level apart from
    connection establishment when ``retry_attempts`` is configured.

    Args:
        config: Client configuration. ``base_url`` must be non-empty.

    Example:
        >>> with NodeRedClient(ClientConfig(base_url="http://localhost:1880")) as client:
        ...     client.health_check()

    Note:
        The bearer token is replaced by ``authenticate``. Reads and writes
        of the token are locked, but a request already in flight keeps
        the token it started with; serialize ``authenticate`` with other
        calls if that ordering matters.
    """

    def __init__(self, config: ClientConfig) -> None:
        if not config.base_url:
            raise ConfigurationError("base_url is required")

        self._config = config
        self._token_lock = threading.Lock()
        self._api_key = config.api_key or None
        self._translator = FlowTranslator()

        # Setup logging
        if config.debug:
            logging.basicConfig(level=logging.DEBUG)
            logger.setLevel(logging.DEBUG)

        self._http_client = self._create_http_client()

        logger.debug(f"NodeRedClient initialized with base URL: {config.base_url}")

    def _create_http_client(self) -> httpx.Client:
        """Create and configure the HTTP client."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"nodered-wrapper-python/{__version__}",
        }

        transport = httpx.HTTPTransport(retries=self._config.retry_attempts)

        return httpx.Client(
            base_url=self._config.base_url,
            headers=headers,
            timeout=httpx.Timeout(self._config.timeout),
            transport=transport,
        )

    @property
    def api_key(self) -> Optional[str]:
        """The bearer token currently attached to requests."""
        with self._token_lock:
            return self._api_key

    @api_key.setter
    def api_key(self, value: Optional[str]) -> None:
        with self._token_lock:
            self._api_key = value or None

    @property
    def translator(self) -> FlowTranslator:
        return self._translator

    # =========================================================================
    # Request plumbing
    # =========================================================================

    def request(
        self,
        method: str,
        path: str,
        operation: str,
        json: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Send a request and return the raw response.

        Status codes are not interpreted here; each operation decides
        which statuses are successful.

        Args:
            method: HTTP method
            path: Endpoint path relative to the base URL
            operation: Human-readable operation name used in errors
            json: JSON body

        Raises:
            TimeoutError: If the request exceeds the configured timeout
            TransportError: If the request fails at the network level
        """
        headers: Dict[str, str] = {}
        token = self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug(f"Making {method} request to {path}")
        if json is not None:
            logger.debug(f"JSON: {_redact(json)}")

        try:
            response = self._http_client.request(
                method=method,
                url=path,
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(
                f"failed to {operation}: request timed out: {e}",
                operation=operation,
                timeout_seconds=self._config.timeout,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"failed to {operation}: {e}", operation=operation) from e

        logger.debug(f"Response status: {response.status_code}")
        return response

    def _decode(self, response: httpx.Response, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(
                f"failed to decode {operation} response: {e}",
                operation=operation,
            ) from e

    def _status_error(self, response: httpx.Response, operation: str) -> APIError:
        return APIError(
            f"failed to {operation}: status {response.status_code}",
            status_code=response.status_code,
            response_body=response.text,
            operation=operation,
        )

    @staticmethod
    def _flow_path(template: str, flow_id: str) -> str:
        return template.format(flow_id=quote(flow_id, safe=""))

    # =========================================================================
    # Operations
    # =========================================================================

    def deploy_flow(self, flow: FlowDefinition) -> None:
        """
        Deploy a flow, updating it in place or creating it.

        The flow is first sent with ``PUT /flow/{id}``. If Node-RED does
        not know the flow it answers 404, and the same payload is sent
        once with ``POST /flow``.

        Raises:
            ValidationError: If the flow cannot be translated
            APIError: If the final response is not 200
        """
        payload = self._translator.to_deploy_payload(flow)

        response = self.request(
            "PUT",
            self._flow_path(Endpoints.FLOW, flow.id),
            operation="deploy flow",
            json=payload,
        )

        if response.status_code == 404:
            logger.debug(f"Flow {flow.id} not found, creating new flow with POST")
            self._create_flow(payload)
            return

        if response.status_code != 200:
            raise self._status_error(response, "deploy flow")

    def _create_flow(self, payload: Dict[str, Any]) -> None:
        """Create a new flow with ``POST /flow``."""
        response = self.request(
            "POST",
            Endpoints.FLOW_CREATE,
            operation="create flow",
            json=payload,
        )

        if response.status_code != 200:
            raise self._status_error(response, "create flow")

    def execute_flow(
        self,
        flow_id: str,
        input: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Trigger a flow execution.

        The response body is decoded into an ExecutionResult whatever the
        status, so failures reported by the flow reach the caller. A
        non-success status whose body is not JSON raises APIError.

        Raises:
            APIError: If the request failed and the body is not JSON
            DecodeError: If a successful response is not a JSON object
        """
        operation = "execute flow"
        response = self.request(
            "POST",
            self._flow_path(Endpoints.FLOWS_EXECUTE, flow_id),
            operation=operation,
            json=input or {},
        )

        try:
            data = response.json()
        except ValueError as e:
            if not response.is_success:
                raise self._status_error(response, operation) from e
            raise DecodeError(
                f"failed to decode {operation} response: {e}",
                operation=operation,
            ) from e

        if not isinstance(data, dict):
            raise DecodeError(
                f"failed to decode {operation} response: expected a JSON object",
                operation=operation,
            )

        try:
            return ExecutionResult.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(
                f"failed to decode execution result: {e!r}",
                operation=operation,
            ) from e

    def get_flow(self, flow_id: str) -> FlowDefinition:
        """
        Retrieve a deployed flow.

        Raises:
            NotFoundError: If the flow does not exist
            APIError: For any other non-200 status
            DecodeError: If the body is not a flow document
        """
        operation = "get flow"
        response = self.request(
            "GET",
            self._flow_path(Endpoints.FLOWS_ITEM, flow_id),
            operation=operation,
        )

        if response.status_code == 404:
            raise NotFoundError(resource_type="flow", resource_id=flow_id, operation=operation)
        if response.status_code != 200:
            raise self._status_error(response, operation)

        data = self._decode(response, operation)
        try:
            return FlowDefinition.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"failed to decode flow: {e!r}", operation=operation) from e

    def delete_flow(self, flow_id: str) -> None:
        """
        Remove a flow.

        Raises:
            NotFoundError: If the flow does not exist
            APIError: For any other non-200 status
        """
        operation = "delete flow"
        response = self.request(
            "DELETE",
            self._flow_path(Endpoints.FLOWS_ITEM, flow_id),
            operation=operation,
        )

        if response.status_code == 404:
            raise NotFoundError(resource_type="flow", resource_id=flow_id, operation=operation)
        if response.status_code != 200:
            raise self._status_error(response, operation)

    def health_check(self) -> None:
        """
        Check that Node-RED answers on its health endpoint.

        Raises:
            APIError: If the status is not 200
        """
        response = self.request("GET", Endpoints.HEALTH, operation="check health")

        if response.status_code != 200:
            raise APIError(
                f"Node-RED is not healthy: status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
                operation="check health",
            )

    def authenticate(self, username: str, password: str) -> AuthToken:
        """
        Exchange admin credentials for an access token.

        On success the token replaces the client's bearer token for all
        subsequent requests.

        Args:
            username: Node-RED admin user
            password: The user's password

        Returns:
            The issued AuthToken

        Raises:
            AuthenticationError: If the credentials are rejected or no
                token is returned
            DecodeError: If the token fields are malformed; the current
                token is kept
        """
        operation = "authenticate"
        payload = {
            "client_id": AUTH_CLIENT_ID,
            "grant_type": AUTH_GRANT_TYPE,
            "scope": AUTH_SCOPE,
            "username": username,
            "password": password,
        }

        response = self.request("POST", Endpoints.AUTH_TOKEN, operation=operation, json=payload)

        if response.status_code != 200:
            raise AuthenticationError(
                f"authentication failed: status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        data = self._decode(response, operation)
        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise AuthenticationError(
                "no access token in auth response",
                status_code=response.status_code,
            )

        token_type = data.get("token_type") or "Bearer"
        try:
            if not isinstance(access_token, str) or not isinstance(token_type, str):
                raise TypeError("access_token and token_type must be strings")
            token = AuthToken(
                access_token=access_token,
                token_type=token_type,
                expires_in=int(data.get("expires_in") or 0),
            )
        except (TypeError, ValueError) as e:
            raise DecodeError(f"failed to decode auth response: {e}", operation=operation) from e

        # Only a fully decoded response replaces the token
        self.api_key = token.access_token
        logger.debug("Bearer token updated from auth response")

        return token

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._http_client.close()
        logger.debug("NodeRedClient closed")

    def __enter__(self) -> "NodeRedClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"NodeRedClient(base_url='{self._config.base_url}')"
