"""
Node-RED Wrapper - Exceptions

This module contains all custom exceptions raised by the client and wrapper.
"""

from typing import Any, Dict, Optional


class NodeRedError(Exception):
    """
    Base exception for all Node-RED wrapper errors.

    All exceptions raised by the library inherit from this class,
    making it easy to catch all wrapper-related errors.

    Attributes:
        message: Human-readable error message
        code: Error code if available
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ConfigurationError(NodeRedError):
    """Raised when the client configuration is invalid."""

    def __init__(self, message: str = "Invalid client configuration") -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")


class ValidationError(NodeRedError):
    """
    Raised when input fails local validation.

    No request is sent to Node-RED when this is raised.

    Attributes:
        field: Name of the offending field, if known
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
    ) -> None:
        details = {"field": field} if field else None
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


# =============================================================================
# HTTP/API Errors
# =============================================================================

class APIError(NodeRedError):
    """
    Raised when Node-RED answers with an unexpected status code.

    Attributes:
        status_code: HTTP status code from the response
        response_body: Raw response body
        operation: Client operation that failed
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: Optional[str] = None,
        operation: Optional[str] = None,
        code: str = "API_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status_code = status_code
        self.response_body = response_body
        self.operation = operation

    def __str__(self) -> str:
        base = f"[HTTP {self.status_code}] {self.message}"
        if self.response_body:
            base += f", body: {self.response_body}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "operation": self.operation,
        })
        return result


class NotFoundError(APIError):
    """
    Raised when a flow does not exist on the Node-RED instance.

    Attributes:
        resource_type: Type of resource that wasn't found
        resource_id: ID of the resource that wasn't found
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        if resource_type and resource_id:
            message = f"{resource_type} not found: {resource_id}"
        super().__init__(message, status_code=404, operation=operation, code="NOT_FOUND")
        self.resource_type = resource_type
        self.resource_id = resource_id

    def __str__(self) -> str:
        return self.message


class AuthenticationError(APIError):
    """
    Raised when the token endpoint rejects the credentials or
    answers without an access token.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        status_code: int = 401,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            response_body=response_body,
            operation="authenticate",
            code="AUTHENTICATION_ERROR",
        )


# =============================================================================
# Transport Errors
# =============================================================================

class TransportError(NodeRedError):
    """
    Raised when a request could not be completed at the network level.

    Attributes:
        operation: Client operation that failed
    """

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(message, code="TRANSPORT_ERROR")
        self.operation = operation


class TimeoutError(TransportError):
    """
    Raised when a request exceeds the configured timeout.

    Attributes:
        timeout_seconds: The timeout that was exceeded
    """

    def __init__(
        self,
        message: str = "Request timed out",
        operation: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        super().__init__(message, operation=operation)
        self.code = "TIMEOUT"
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds:
            return f"{base} after {self.timeout_seconds}s"
        return base


class DecodeError(NodeRedError):
    """
    Raised when a response body is not the JSON document expected.

    Attributes:
        operation: Client operation whose response failed to decode
    """

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(message, code="DECODE_ERROR")
        self.operation = operation


# =============================================================================
# Extension Point Errors
# =============================================================================

class ConversionError(NodeRedError):
    """
    Raised when a converter cannot translate a workflow.

    Attributes:
        received_type: Name of the type the converter was given
    """

    def __init__(
        self,
        message: str = "Workflow conversion failed",
        received_type: Optional[str] = None,
    ) -> None:
        details = {"received_type": received_type} if received_type else None
        super().__init__(message, code="CONVERSION_ERROR", details=details)
        self.received_type = received_type


class HookError(NodeRedError):
    """
    Raised when an execution hook fails.

    Attributes:
        stage: Hook that failed ("pre-execution", "post-execution" or
            "error-handler")
        original_error: The transport error being handled when the
            error handler itself failed
    """

    def __init__(
        self,
        message: str,
        stage: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        details: Dict[str, Any] = {"stage": stage}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, code="HOOK_ERROR", details=details)
        self.stage = stage
        self.original_error = original_error
