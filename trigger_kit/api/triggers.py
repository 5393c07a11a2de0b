"""Polling trigger routes."""

from typing import Any

from fastapi import APIRouter, Depends

from trigger_kit.api.deps import get_connector, get_dispatcher
from trigger_kit.connectors import BaseConnector
from trigger_kit.models.invocation import SampleRequest, TriggerInvocation, TriggerResult
from trigger_kit.services.dispatcher import InvocationDispatcher

router = APIRouter(prefix="/triggers", tags=["triggers"])


@router.post("/{system}/{event}", response_model=TriggerResult)
async def invoke_trigger(
    event: str,
    invocation: TriggerInvocation,
    connector: BaseConnector = Depends(get_connector),
    dispatcher: InvocationDispatcher = Depends(get_dispatcher),
) -> TriggerResult:
    """Run one poll of a trigger.

    The returned ``state`` must be stored by the host and sent back with the
    next invocation; ``null`` means nothing is kept (learning mode).
    """
    return await dispatcher.dispatch_trigger(connector, event, invocation)


@router.post("/{system}/{event}/sample")
async def load_sample(
    event: str,
    data: SampleRequest,
    connector: BaseConnector = Depends(get_connector),
    dispatcher: InvocationDispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    """One representative entity for the trigger, or ``{}`` when there is none."""
    entity = await dispatcher.dispatch_sample(connector, event, data.criteria)
    return entity.model_dump(mode="json") if entity is not None else {}
