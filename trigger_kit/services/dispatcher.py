"""InvocationDispatcher - routes host invocations to connector handlers.

The handler table is built once from the ConnectorRegistry at startup; a
request only does a dictionary lookup on ``(system, kind, name)``.
"""

import logging
from collections.abc import Callable
from typing import Any

from trigger_kit.connectors.base import (
    HANDLER_KINDS,
    BaseConnector,
    ConnectorRegistry,
    ValidationError,
)
from trigger_kit.models.dictionary import DictionaryPage, DictionaryPayload
from trigger_kit.models.entity import Entity
from trigger_kit.models.invocation import TriggerInvocation, TriggerResult

logger = logging.getLogger(__name__)

HandlerKey = tuple[str, str, str]


class InvocationDispatcher:
    """Explicit ``(system, kind, name) -> handler`` table."""

    def __init__(self, handlers: dict[HandlerKey, Callable[..., Any]] | None = None) -> None:
        self._handlers: dict[HandlerKey, Callable[..., Any]] = dict(handlers or {})

    @classmethod
    def from_registry(cls) -> "InvocationDispatcher":
        handlers: dict[HandlerKey, Callable[..., Any]] = {}
        for connector_class in ConnectorRegistry.list_connectors():
            for kind in HANDLER_KINDS:
                for name, func in connector_class.handlers.get(kind, {}).items():
                    handlers[(connector_class.system, kind, name)] = func
        logger.info(f"Dispatcher resolved {len(handlers)} handler(s)")
        return cls(handlers)

    def systems(self) -> list[str]:
        return sorted({system for (system, _, _) in self._handlers})

    def names(self, system: str, kind: str) -> list[str]:
        return sorted(name for (s, k, name) in self._handlers if s == system and k == kind)

    def resolve(self, system: str, kind: str, name: str) -> Callable[..., Any]:
        handler = self._handlers.get((system, kind, name))
        if handler is None:
            raise ValidationError(f"Unknown {kind} '{name}' for {system}", system=system)
        return handler

    async def dispatch_trigger(
        self, connector: BaseConnector, name: str, invocation: TriggerInvocation
    ) -> TriggerResult:
        handler = self.resolve(connector.system, "trigger", name)
        logger.debug(
            f"[{connector.system}.{name}] trigger invocation learning_mode={invocation.learning_mode}"
        )
        return await handler(connector, invocation)

    async def dispatch_dictionary(
        self, connector: BaseConnector, name: str, payload: DictionaryPayload
    ) -> DictionaryPage:
        handler = self.resolve(connector.system, "dictionary", name)
        return await handler(connector, payload)

    async def dispatch_sample(
        self, connector: BaseConnector, name: str, criteria: dict[str, Any]
    ) -> Entity | None:
        handler = self.resolve(connector.system, "sample", name)
        return await handler(connector, criteria)
