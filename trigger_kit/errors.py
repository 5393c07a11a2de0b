"""Error taxonomy shared by connectors and services.

ConnectorError
├── RemoteError            third-party API failure (non-2xx, malformed, transport)
│   ├── AuthenticationError
│   ├── NotFoundError
│   └── RateLimitError
├── ConfigurationError     required column, field or secret is missing
└── ValidationError        caller-supplied arguments fail a precondition
"""

from typing import Any


class ConnectorError(Exception):
    """Base exception for connector errors."""

    def __init__(self, message: str, system: str | None = None, retriable: bool = False):
        super().__init__(message)
        self.message = message
        self.system = system
        self.retriable = retriable

    @property
    def error_type(self) -> str | None:
        return None

    @property
    def http_status_code(self) -> int | None:
        return None

    def to_dict(self) -> dict[str, Any]:
        """Flat shape handed back to the host."""
        return {
            "message": self.message,
            "httpStatusCode": self.http_status_code,
            "type": self.error_type,
        }


class RemoteError(ConnectorError):
    """Non-2xx, malformed or failed response from a third-party API."""

    def __init__(
        self,
        message: str,
        http_status_code: int | None = None,
        error_type: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self._http_status_code = http_status_code
        self._error_type = error_type

    @property
    def error_type(self) -> str | None:
        return self._error_type

    @property
    def http_status_code(self) -> int | None:
        return self._http_status_code


class AuthenticationError(RemoteError):
    """Authentication failed (token expired, invalid credentials)."""

    pass


class NotFoundError(RemoteError):
    """Remote object not found."""

    pass


class RateLimitError(RemoteError):
    """Rate limit exceeded."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs: Any):
        super().__init__(message, retriable=True, **kwargs)
        self.retry_after = retry_after


class ConfigurationError(ConnectorError):
    """A required lookup field, column or secret is missing."""

    @property
    def error_type(self) -> str | None:
        return "CONFIGURATION_ERROR"


class ValidationError(ConnectorError):
    """Caller-supplied arguments fail a precondition."""

    @property
    def error_type(self) -> str | None:
        return "VALIDATION_ERROR"
