"""Dictionary (selector population) routes."""

from fastapi import APIRouter, Depends

from trigger_kit.api.deps import get_connector, get_dispatcher
from trigger_kit.connectors import BaseConnector
from trigger_kit.models.dictionary import DictionaryPage, DictionaryPayload
from trigger_kit.services.dispatcher import InvocationDispatcher

router = APIRouter(prefix="/dictionaries", tags=["dictionaries"])


@router.post("/{system}/{name}", response_model=DictionaryPage)
async def get_dictionary(
    name: str,
    payload: DictionaryPayload,
    connector: BaseConnector = Depends(get_connector),
    dispatcher: InvocationDispatcher = Depends(get_dispatcher),
) -> DictionaryPage:
    """One page of items; pass the returned cursor back for the next page."""
    return await dispatcher.dispatch_dictionary(connector, name, payload)
