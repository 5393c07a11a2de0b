"""Base connector interface for trigger sources.

Every connector exposes its host-callable operations as tagged methods:
1. Polling triggers (``@trigger``): invocation + previous state -> events + next state
2. Dictionaries (``@dictionary``): search/cursor payload -> one page of selector items
3. Sample loaders (``@sample_loader``): criteria -> one representative entity

The tags are collected once, when the class is registered, so dispatch never
resolves handlers by attribute name at request time.
"""

from abc import ABC
from collections.abc import Callable
from typing import Any, ClassVar, TypeVar

import httpx

from trigger_kit.config import Settings
from trigger_kit.errors import (  # noqa: F401
    AuthenticationError,
    ConfigurationError,
    ConnectorError,
    NotFoundError,
    RateLimitError,
    RemoteError,
    ValidationError,
)
from trigger_kit.models.invocation import (
    TriggerMatchRequest,
    TriggerMatchResult,
    WebhookEventsResult,
)


# =========================================================================
# Handler tags
# =========================================================================

HANDLER_KINDS = ("trigger", "dictionary", "sample")

F = TypeVar("F", bound=Callable[..., Any])


def _tag(kind: str, name: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        func.__handler_tag__ = (kind, name)  # type: ignore[attr-defined]
        return func

    return decorator


def trigger(name: str) -> Callable[[F], F]:
    """Mark a method as the polling trigger ``name``."""
    return _tag("trigger", name)


def dictionary(name: str) -> Callable[[F], F]:
    """Mark a method as the dictionary ``name``."""
    return _tag("dictionary", name)


def sample_loader(name: str) -> Callable[[F], F]:
    """Mark a method as the sample-result loader of trigger ``name``."""
    return _tag("sample", name)


class BaseConnector(ABC):
    """Abstract base class for trigger-source connectors.

    Connectors are cheap, per-request objects: they hold the settings, the
    shared HTTP client and (for OAuth sources) the caller's access token, and
    nothing that survives between invocations.

    Example implementation:
        @ConnectorRegistry.register
        class ExampleConnector(BaseConnector):
            system = "example"

            @dictionary("get-things")
            async def get_things_dictionary(self, payload):
                ...
    """

    # Class-level configuration
    system: ClassVar[str]  # Unique system identifier (e.g., "airtable", "telegram")
    requires_oauth: ClassVar[bool] = False
    supports_webhooks: ClassVar[bool] = False

    # Filled by ConnectorRegistry.register: kind -> {name: function}
    handlers: ClassVar[dict[str, dict[str, Callable[..., Any]]]] = {}

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        access_token: str | None = None,
    ) -> None:
        """Initialize the connector.

        Args:
            settings: Process configuration (client ids, secrets, timeouts)
            client: Shared HTTP client; a per-call client is used when omitted
            access_token: OAuth access token of the connection being served
        """
        self.settings = settings
        self._client = client
        self._access_token = access_token

    # =========================================================================
    # Optional Methods (can override)
    # =========================================================================

    def credential_manager(self) -> Any:
        """Return the CredentialLifecycleManager for OAuth sources."""
        raise ValidationError(
            f"{self.system} connector does not use OAuth", system=self.system
        )

    async def upsert_webhook(self, callback_url: str) -> dict[str, Any]:
        raise ValidationError(
            f"{self.system} connector does not support webhooks", system=self.system
        )

    async def delete_webhook(self) -> dict[str, Any]:
        raise ValidationError(
            f"{self.system} connector does not support webhooks", system=self.system
        )

    async def resolve_events(
        self, body: dict[str, Any], query_params: dict[str, Any]
    ) -> WebhookEventsResult:
        raise ValidationError(
            f"{self.system} connector does not support webhooks", system=self.system
        )

    async def select_matched(
        self, event_name: str, request: TriggerMatchRequest
    ) -> TriggerMatchResult:
        raise ValidationError(
            f"{self.system} connector does not support webhooks", system=self.system
        )

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def require_access_token(self) -> str:
        if not self._access_token:
            raise ValidationError(
                f"{self.system} requires an OAuth access token", system=self.system
            )
        return self._access_token

    @staticmethod
    def require_keys(data: dict[str, Any] | None, *keys: str, system: str | None = None) -> list[Any]:
        """Return the values of ``keys`` from ``data`` or raise ValidationError."""
        data = data or {}
        missing = [key for key in keys if data.get(key) in (None, "")]
        if missing:
            raise ValidationError(
                f"Missing required parameter(s): {', '.join(missing)}", system=system
            )
        return [data[key] for key in keys]


def _collect_handlers(connector_class: type[BaseConnector]) -> dict[str, dict[str, Callable[..., Any]]]:
    handlers: dict[str, dict[str, Callable[..., Any]]] = {kind: {} for kind in HANDLER_KINDS}
    # Walk the MRO base-first so subclasses override inherited tags
    for klass in reversed(connector_class.__mro__):
        for attr in vars(klass).values():
            tag = getattr(attr, "__handler_tag__", None)
            if tag:
                kind, name = tag
                handlers[kind][name] = attr
    return handlers


class ConnectorRegistry:
    """Registry of available connectors.

    Use this to look up connectors by system name.
    """

    _connectors: dict[str, type[BaseConnector]] = {}

    @classmethod
    def register(cls, connector_class: type[BaseConnector]) -> type[BaseConnector]:
        """Register a connector class and collect its tagged handlers.

        Can be used as a decorator:
            @ConnectorRegistry.register
            class AirtableConnector(BaseConnector):
                system = "airtable"
        """
        connector_class.handlers = _collect_handlers(connector_class)
        cls._connectors[connector_class.system] = connector_class
        return connector_class

    @classmethod
    def get(cls, system: str) -> type[BaseConnector] | None:
        """Get connector class by system name."""
        return cls._connectors.get(system)

    @classmethod
    def list_systems(cls) -> list[str]:
        """List registered system names."""
        return list(cls._connectors.keys())

    @classmethod
    def list_connectors(cls) -> list[type[BaseConnector]]:
        """List all registered connector classes."""
        return list(cls._connectors.values())
