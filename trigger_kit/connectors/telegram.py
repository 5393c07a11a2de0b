"""Telegram connector: bot chats dictionary and message webhook.

Telegram pushes updates to one webhook per bot, so this connector is the
push-capable counterpart of the polling Airtable triggers. The bot token is
part of every method URL and is masked in logs.
"""

import logging
from datetime import datetime, timezone
from typing import Any, ClassVar

import httpx

from trigger_kit.config import Settings
from trigger_kit.connectors.base import (
    BaseConnector,
    ConnectorRegistry,
    ValidationError,
    dictionary,
)
from trigger_kit.models.dictionary import DictionaryItem, DictionaryPage, DictionaryPayload, RemotePage
from trigger_kit.models.invocation import (
    TriggerMatchRequest,
    TriggerMatchResult,
    WebhookEvent,
    WebhookEventsResult,
)
from trigger_kit.remote import RemoteCaller
from trigger_kit.services.search_index import CursorPaginatedSearchIndex

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.telegram.org"

ON_MESSAGE_EVENT = "onMessage"


def telegram_error_parser(body: Any, status_code: int) -> tuple[str, str | None]:
    """``{"ok": false, "error_code": 400, "description": "..."}``"""
    if isinstance(body, dict) and "description" in body:
        code = body.get("error_code", status_code)
        return f"Telegram Error: [{code}] {body['description']}", None
    return f"Telegram Error: [{status_code}] {body or 'Unknown error'}", None


def _full_name(chat: dict[str, Any]) -> str:
    return " ".join(part for part in (chat.get("first_name"), chat.get("last_name")) if part)


def _project_chat(chat: dict[str, Any]) -> DictionaryItem:
    if chat.get("type") == "private":
        label = f"{chat['full_name']} (private)"
        note = f"ID: {chat['id']}, @{chat.get('username')}"
    else:
        label = f"{chat.get('title')} ({chat.get('type')})"
        note = f"ID: {chat['id']}"
        if chat.get("member_count"):
            note += f", Members: {chat['member_count']}"

    return DictionaryItem(label=label, note=note, value=str(chat["id"]))


CHATS_INDEX = CursorPaginatedSearchIndex(
    ["id", "username", "full_name", "title"], _project_chat, name="getChatsDictionary"
)


def distinct_chats(updates: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Chats seen in message updates, first occurrence wins."""
    chats: dict[Any, dict[str, Any]] = {}
    for update in updates:
        chat = (update.get("message") or {}).get("chat")
        if chat and chat.get("id") not in chats:
            chats[chat["id"]] = {**chat, "full_name": _full_name(chat)}
    return list(chats.values())


@ConnectorRegistry.register
class TelegramConnector(BaseConnector):
    """Connector for a Telegram bot identified by TELEGRAM_BOT_TOKEN."""

    system: ClassVar[str] = "telegram"
    supports_webhooks: ClassVar[bool] = True

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        access_token: str | None = None,
    ) -> None:
        super().__init__(settings, client=client, access_token=access_token)
        self.remote = RemoteCaller(
            self.system,
            client=client,
            error_parser=telegram_error_parser,
            secrets=[settings.telegram_bot_token],
            timeout=settings.http_timeout_seconds,
        )

    def _method_url(self, method: str) -> str:
        token = self.settings.require("telegram_bot_token", system=self.system)
        return f"{API_BASE_URL}/bot{token}/{method}"

    async def _api_request(
        self,
        method: str,
        http_method: str = "GET",
        query: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        data = await self.remote.request(
            http_method, self._method_url(method), query=query, body=body, log_tag=method
        )
        return data.get("result") if isinstance(data, dict) else data

    # =========================================================================
    # Dictionaries
    # =========================================================================

    @dictionary("get-chats")
    async def get_chats_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        """Chats the bot has received messages from, read from pending updates.

        Read-only: no ``offset`` is sent, since Telegram confirms every update
        below it and would drop them from the bot's queue. A single page of
        up to 100 pending updates is returned and the cursor is always None.
        """

        async def fetch_page(cursor: Any) -> RemotePage:
            updates = await self._api_request("getUpdates") or []
            return RemotePage(items=distinct_chats(updates), next_cursor=None)

        return await CHATS_INDEX.list(fetch_page, payload.search, payload.cursor)

    # =========================================================================
    # Webhook
    # =========================================================================

    async def upsert_webhook(self, callback_url: str) -> dict[str, Any]:
        await self._api_request("setWebhook", http_method="POST", body={"url": callback_url})
        logger.info("[upsertWebhook] webhook set")
        return {
            "webhookData": {
                "webhookUrl": callback_url,
                "created": datetime.now(timezone.utc).isoformat(),
            }
        }

    async def delete_webhook(self) -> dict[str, Any]:
        await self._api_request(
            "deleteWebhook", http_method="POST", body={"drop_pending_updates": False}
        )
        logger.info("[deleteWebhook] webhook deleted")
        return {}

    async def resolve_events(
        self, body: dict[str, Any], query_params: dict[str, Any]
    ) -> WebhookEventsResult:
        events = []
        if body.get("message"):
            events.append(WebhookEvent(name=ON_MESSAGE_EVENT, data=body))

        logger.debug(f"[resolveEvents] composed {len(events)} event(s)")
        return WebhookEventsResult(events=events, connection_id=query_params.get("connectionId"))

    async def select_matched(
        self, event_name: str, request: TriggerMatchRequest
    ) -> TriggerMatchResult:
        if event_name != ON_MESSAGE_EVENT:
            raise ValidationError(f"Unknown event '{event_name}' for telegram", system=self.system)

        chat = (request.event_data.get("message") or {}).get("chat") or {}
        chat_id = str(chat.get("id"))

        ids = []
        for instance in request.triggers:
            wanted = (instance.get("data") or {}).get("chatId")
            # Telegram sends chat ids as numbers, selectors store strings
            if not wanted or str(wanted) == chat_id:
                ids.append(str(instance["id"]))

        logger.debug(f"[selectMatched.{event_name}] matched {len(ids)} trigger(s)")
        return TriggerMatchResult(ids=ids)
