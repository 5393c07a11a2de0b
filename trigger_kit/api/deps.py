"""Request-scoped dependencies shared by the API routers.

Settings, the shared HTTP client and the dispatcher are created once per
application (see ``trigger_kit.main``); connectors are built per request.
"""

import httpx
from fastapi import Depends, Header, HTTPException, Request

from trigger_kit.config import Settings
from trigger_kit.connectors import BaseConnector, ConnectorRegistry
from trigger_kit.errors import ValidationError
from trigger_kit.services.dispatcher import InvocationDispatcher


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_dispatcher(request: Request) -> InvocationDispatcher:
    return request.app.state.dispatcher


def get_connector(
    system: str,
    request: Request,
    oauth_access_token: str | None = Header(None),
) -> BaseConnector:
    """Build the connector for ``system`` with the caller's OAuth access token."""
    connector_class = ConnectorRegistry.get(system)
    if connector_class is None:
        raise HTTPException(status_code=404, detail=f"Unknown system '{system}'")

    client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)
    return connector_class(
        get_settings(request), client=client, access_token=oauth_access_token
    )


def get_oauth_connector(connector: BaseConnector = Depends(get_connector)) -> BaseConnector:
    """The connector for ``system``, rejected unless it connects over OAuth."""
    if not connector.requires_oauth:
        raise ValidationError(
            f"{connector.system} connector does not use OAuth", system=connector.system
        )
    return connector


def get_webhook_connector(connector: BaseConnector = Depends(get_connector)) -> BaseConnector:
    """The connector for ``system``, rejected unless it receives pushed events."""
    if not connector.supports_webhooks:
        raise ValidationError(
            f"{connector.system} connector does not support webhooks", system=connector.system
        )
    return connector
