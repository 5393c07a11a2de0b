"""OAuth2 connection routes.

The service keeps no credential: the callback and refresh responses are the
host's to store.
"""

from typing import Any

from fastapi import APIRouter, Depends

from trigger_kit.api.deps import get_oauth_connector
from trigger_kit.connectors import BaseConnector
from trigger_kit.models.credential import Credential
from trigger_kit.models.invocation import (
    AuthorizationCallback,
    ConnectionURLResponse,
    RefreshRequest,
)

router = APIRouter(prefix="/oauth", tags=["oauth"])


@router.get("/{system}/connection-url", response_model=ConnectionURLResponse)
async def get_connection_url(
    connector: BaseConnector = Depends(get_oauth_connector),
) -> ConnectionURLResponse:
    url = connector.credential_manager().build_authorization_url()
    return ConnectionURLResponse(url=url)


@router.post("/{system}/callback")
async def execute_callback(
    callback: AuthorizationCallback,
    connector: BaseConnector = Depends(get_oauth_connector),
) -> dict[str, Any]:
    """Exchange the code; a failed exchange returns ``{}`` rather than an error."""
    result = await connector.credential_manager().exchange_code(
        callback.code, callback.redirect_uri, code_verifier=callback.state
    )
    return result.to_host()


@router.put("/{system}/refresh", response_model=Credential)
async def refresh_token(
    data: RefreshRequest,
    connector: BaseConnector = Depends(get_oauth_connector),
) -> Credential:
    return await connector.credential_manager().refresh(data.refresh_token)
