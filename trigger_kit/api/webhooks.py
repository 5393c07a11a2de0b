"""Webhook routes for push-capable sources."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from trigger_kit.api.deps import get_webhook_connector
from trigger_kit.connectors import BaseConnector
from trigger_kit.models.invocation import (
    TriggerMatchRequest,
    TriggerMatchResult,
    WebhookEventsResult,
    WebhookRegistration,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/{system}")
async def upsert_webhook(
    data: WebhookRegistration,
    connector: BaseConnector = Depends(get_webhook_connector),
) -> dict[str, Any]:
    return await connector.upsert_webhook(data.callback_url)


@router.delete("/{system}")
async def delete_webhook(
    connector: BaseConnector = Depends(get_webhook_connector),
) -> dict[str, Any]:
    return await connector.delete_webhook()


@router.post("/{system}/events", response_model=WebhookEventsResult)
async def resolve_events(
    request: Request,
    body: dict[str, Any] = Body(...),
    connector: BaseConnector = Depends(get_webhook_connector),
) -> WebhookEventsResult:
    """Shape a pushed body into named events.

    Query parameters (e.g. ``connectionId``) are passed through untouched.
    """
    return await connector.resolve_events(body, dict(request.query_params))


@router.post("/{system}/{event}/match", response_model=TriggerMatchResult)
async def select_matched(
    event: str,
    data: TriggerMatchRequest,
    connector: BaseConnector = Depends(get_webhook_connector),
) -> TriggerMatchResult:
    """Ids of the trigger instances whose filter matches the pushed event."""
    return await connector.select_matched(event, data)
