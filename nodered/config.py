"""
Node-RED Wrapper - Configuration

This module contains configuration classes and defaults for the client.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ClientConfig:
    """
    Configuration for the Node-RED client.

    Attributes:
        base_url: Base URL of the Node-RED admin API
        api_key: Bearer token sent with every request, if set
        timeout: Request timeout in seconds
        retry_attempts: Connection attempts retried by the transport
        debug: Enable request/payload debug logging
    """
    base_url: str = "http://localhost:1880"
    api_key: Optional[str] = None
    timeout: float = 30.0
    retry_attempts: int = 0
    debug: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """
        Build a configuration from ``NODERED_*`` environment variables.

        Keyword overrides that are not None take precedence over the
        environment.
        """
        config = cls(
            base_url=os.environ.get("NODERED_URL", DEFAULT_CONFIG.base_url),
            api_key=os.environ.get("NODERED_API_KEY") or None,
            timeout=float(os.environ.get("NODERED_TIMEOUT", DEFAULT_CONFIG.timeout)),
            retry_attempts=int(
                os.environ.get("NODERED_RETRY_ATTEMPTS", DEFAULT_CONFIG.retry_attempts)
            ),
            debug=os.environ.get("NODERED_DEBUG", "").lower() in ("1", "true", "yes"),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config


# Default configuration
DEFAULT_CONFIG = ClientConfig()


# Endpoints
class Endpoints:
    """Admin API endpoint paths."""

    # Flow deployment (single-flow admin API)
    FLOW = "/flow/{flow_id}"
    FLOW_CREATE = "/flow"

    # Flow management
    FLOWS_ITEM = "/flows/{flow_id}"
    FLOWS_EXECUTE = "/flows/{flow_id}/execute"

    # Service
    HEALTH = "/health"
    AUTH_TOKEN = "/auth/token"


# Password-grant parameters expected by the Node-RED admin auth endpoint
AUTH_CLIENT_ID = "node-red-admin"
AUTH_GRANT_TYPE = "password"
AUTH_SCOPE = "*"
