"""Airtable connector: record polling triggers, schema dictionaries and OAuth.

Airtable offers no push notification for record changes that fits a stateless
runtime, so both record triggers poll the table sorted by a timestamp column
(newest first) and diff against the snapshot the host hands back.
"""

import logging
from typing import Any, ClassVar
from urllib.parse import quote

import httpx

from trigger_kit.config import Settings
from trigger_kit.connectors.base import (
    BaseConnector,
    ConfigurationError,
    ConnectorRegistry,
    dictionary,
    sample_loader,
    trigger,
)
from trigger_kit.models.credential import AccountIdentity
from trigger_kit.models.dictionary import (
    DictionaryItem,
    DictionaryPage,
    DictionaryPayload,
    RemotePage,
)
from trigger_kit.models.entity import DetectMode, Entity, Snapshot
from trigger_kit.models.invocation import TriggerInvocation, TriggerResult
from trigger_kit.remote import RemoteCaller, default_error_parser
from trigger_kit.services.change_detector import FetchCurrent, PollingChangeDetector
from trigger_kit.services.credentials import CredentialLifecycleManager, OAuthConfig
from trigger_kit.services.search_index import (
    CursorPaginatedSearchIndex,
    id_note,
    label_or_placeholder,
)

logger = logging.getLogger(__name__)

OAUTH_BASE_URL = "https://airtable.com/oauth2/v1"
API_BASE_URL = "https://api.airtable.com/v0"

DEFAULT_SCOPE_LIST = [
    "schema.bases:read",
    "user.email:read",
    "webhook:manage",
    "schema.bases:write",
    "data.records:read",
    "data.records:write",
    "data.recordComments:read",
    "data.recordComments:write",
]

DEFAULT_LIMIT = 100

UNKNOWN_ACCOUNT_LABEL = "Unknown Airtable Account"

CREATED_TIME_TYPE = "createdTime"
LAST_MODIFIED_TIME_TYPE = "lastModifiedTime"


def airtable_error_parser(body: Any, status_code: int) -> tuple[str, str | None]:
    """Unwrap ``{"error": {"type", "message"}}`` or ``{"error": "TYPE"}``."""
    error = body.get("error") if isinstance(body, dict) else None

    if isinstance(error, dict):
        error_type = error.get("type")
        message = error.get("message") or error_type or f"HTTP {status_code}"
        return f"[AirtableError]: {message}", error_type

    if isinstance(error, str):
        return f"[AirtableError]: {error}", error

    message, error_type = default_error_parser(body, status_code)
    return f"[AirtableError]: {message}", error_type


# =============================================================================
# Dictionary projections
# =============================================================================


def _project_by_id(item: dict[str, Any]) -> DictionaryItem:
    return DictionaryItem(
        label=label_or_placeholder(item.get("name")),
        note=id_note(item.get("id")),
        value=item.get("id"),
    )


def _project_by_name(item: dict[str, Any]) -> DictionaryItem:
    return DictionaryItem(
        label=label_or_placeholder(item.get("name")),
        note=id_note(item.get("id")),
        value=item.get("name"),
    )


def _project_record(item: dict[str, Any]) -> DictionaryItem:
    return DictionaryItem(label=item["id"], note=id_note(item["id"]), value=item["id"])


def _project_comment(item: dict[str, Any]) -> DictionaryItem:
    return DictionaryItem(
        label=label_or_placeholder(item.get("text")),
        note=id_note(item.get("id")),
        value=item.get("id"),
    )


BASES_INDEX = CursorPaginatedSearchIndex(["id", "name"], _project_by_id, name="getBasesDictionary")
TABLES_INDEX = CursorPaginatedSearchIndex(["id", "name"], _project_by_id, name="getTablesDictionary")
FIELDS_INDEX = CursorPaginatedSearchIndex(["id", "name"], _project_by_name, name="getFieldsDictionary")
LAST_MODIFIED_INDEX = CursorPaginatedSearchIndex(
    ["id", "name"], _project_by_name, name="getLastModifiedColumnsDictionary"
)
RECORDS_INDEX = CursorPaginatedSearchIndex(["id"], _project_record, name="getRecordsDictionary")
COMMENTS_INDEX = CursorPaginatedSearchIndex(
    ["id", "text"], _project_comment, name="getCommentsDictionary"
)


@ConnectorRegistry.register
class AirtableConnector(BaseConnector):
    """Connector for Airtable bases, tables, records and comments."""

    system: ClassVar[str] = "airtable"
    requires_oauth: ClassVar[bool] = True

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
            error_parser=airtable_error_parser,
            timeout=settings.http_timeout_seconds,
        )

    # =========================================================================
    # Remote helpers
    # =========================================================================

    def _auth_headers(self, access_token: str | None = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token or self.require_access_token()}"}

    async def _api_request(
        self,
        url: str,
        query: dict[str, Any] | None = None,
        log_tag: str = "",
        access_token: str | None = None,
    ) -> dict[str, Any]:
        data = await self.remote.request(
            "GET",
            url,
            query=query,
            headers=self._auth_headers(access_token),
            log_tag=log_tag,
        )
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _table_url(base_id: str, table_id_or_name: str) -> str:
        return f"{API_BASE_URL}/{quote(base_id, safe='')}/{quote(table_id_or_name, safe='')}"

    # =========================================================================
    # OAuth
    # =========================================================================

    def credential_manager(self) -> CredentialLifecycleManager:
        config = OAuthConfig(
            provider=self.system,
            client_id=self.settings.require("airtable_client_id", system=self.system),
            client_secret=self.settings.require("airtable_client_secret", system=self.system),
            authorize_url=f"{OAUTH_BASE_URL}/authorize",
            token_url=f"{OAUTH_BASE_URL}/token",
            scopes=self.settings.airtable_scopes or DEFAULT_SCOPE_LIST,
        )
        return CredentialLifecycleManager(config, self.remote, self.get_account_identity)

    async def get_account_identity(self, access_token: str) -> AccountIdentity:
        """Airtable exposes the account email but no public avatar."""
        user = await self._api_request(
            f"{API_BASE_URL}/meta/whoami", log_tag="whoami", access_token=access_token
        )
        return AccountIdentity(
            label=user.get("email") or UNKNOWN_ACCOUNT_LABEL,
            avatar_url=None,
            user_data=user,
        )

    # =========================================================================
    # Schema
    # =========================================================================

    def _tables_page(self, base_id: str):
        async def fetch_page(cursor: Any = None) -> RemotePage:
            data = await self._api_request(
                f"{API_BASE_URL}/meta/bases/{quote(base_id, safe='')}/tables",
                log_tag="getAllTablesSchema",
            )
            return RemotePage(items=data.get("tables") or [])

        return fetch_page

    async def get_table_schema(self, base_id: str, table_id_or_name: str) -> dict[str, Any] | None:
        """Schema of one table, matched by id or name."""
        return await CursorPaginatedSearchIndex.find(self._tables_page(base_id), table_id_or_name)

    async def get_created_column_name(self, base_id: str, table_id_or_name: str) -> str:
        table = await self.get_table_schema(base_id, table_id_or_name)
        for field in (table or {}).get("fields", []):
            if field.get("type") == CREATED_TIME_TYPE:
                return field["name"]

        raise ConfigurationError(
            f'There is no column with type "{CREATED_TIME_TYPE}" in the "{table_id_or_name}" table',
            system=self.system,
        )

    async def get_latest_records(
        self, base_id: str, table_id_or_name: str, sort_by_column: str
    ) -> list[Entity]:
        """First page of records, newest ``sort_by_column`` first."""
        data = await self._api_request(
            self._table_url(base_id, table_id_or_name),
            query={
                "sort[0][field]": sort_by_column,
                "sort[0][direction]": "desc",
            },
            log_tag="getLatestRecords",
        )
        return [Entity.model_validate(record) for record in data.get("records") or []]

    # =========================================================================
    # Polling triggers
    # =========================================================================

    async def _detect(
        self,
        log_tag: str,
        fetch_current: FetchCurrent,
        invocation: TriggerInvocation,
        watch_field: str | None,
    ) -> TriggerResult:
        previous = None if invocation.learning_mode else Snapshot.from_state(invocation.state)
        mode = DetectMode.resolve(previous, invocation.learning_mode)

        delta = await PollingChangeDetector(log_tag=log_tag).detect(
            fetch_current, previous, watch_field=watch_field, mode=mode
        )

        return TriggerResult(
            events=delta.events,
            state=delta.next_snapshot.to_state() if delta.next_snapshot is not None else None,
        )

    @trigger("onNewOrUpdatedRecord")
    async def on_new_or_updated_record(self, invocation: TriggerInvocation) -> TriggerResult:
        """Fires for records that are new or whose last-modified column changed."""
        base_id, table_id_or_name = self.require_keys(
            invocation.trigger_data, "baseId", "tableIdOrName", system=self.system
        )
        last_modified_column = invocation.trigger_data.get("lastModifiedColumn")
        if not last_modified_column:
            raise ConfigurationError(
                "No last modified column is configured for this trigger", system=self.system
            )

        async def fetch_current() -> list[Entity]:
            return await self.get_latest_records(base_id, table_id_or_name, last_modified_column)

        return await self._detect(
            "onNewOrUpdatedRecord", fetch_current, invocation, watch_field=last_modified_column
        )

    @trigger("onNewRecord")
    async def on_new_record(self, invocation: TriggerInvocation) -> TriggerResult:
        """Fires for records whose id was not in the previous snapshot."""
        base_id, table_id_or_name = self.require_keys(
            invocation.trigger_data, "baseId", "tableIdOrName", system=self.system
        )

        async def fetch_current() -> list[Entity]:
            created_column = await self.get_created_column_name(base_id, table_id_or_name)
            return await self.get_latest_records(base_id, table_id_or_name, created_column)

        return await self._detect("onNewRecord", fetch_current, invocation, watch_field=None)

    @sample_loader("onNewOrUpdatedRecord")
    async def load_record_sample(self, criteria: dict[str, Any]) -> Entity | None:
        """First record of the table with every schema field present (absent ones None)."""
        base_id, table_id_or_name = self.require_keys(
            criteria, "baseId", "tableIdOrName", system=self.system
        )
        data = await self._api_request(
            self._table_url(base_id, table_id_or_name),
            query={"pageSize": 1},
            log_tag="onNewOrUpdatedRecord_SampleResultLoader",
        )
        records = data.get("records") or []
        if not records:
            return None

        record = records[0]
        fields = dict(record.get("fields") or {})
        table = await self.get_table_schema(base_id, table_id_or_name)
        for field in (table or {}).get("fields", []):
            fields.setdefault(field["name"], None)

        return Entity.model_validate({**record, "fields": fields})

    # =========================================================================
    # Dictionaries
    # =========================================================================

    @dictionary("get-bases")
    async def get_bases_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        async def fetch_page(cursor: Any) -> RemotePage:
            data = await self._api_request(
                f"{API_BASE_URL}/meta/bases",
                query={"offset": cursor},
                log_tag="getBasesDictionary",
            )
            return RemotePage(items=data.get("bases") or [], next_cursor=data.get("offset"))

        return await BASES_INDEX.list(fetch_page, payload.search, payload.cursor)

    @dictionary("get-tables")
    async def get_tables_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        (base_id,) = self.require_keys(payload.criteria, "baseId", system=self.system)
        return await TABLES_INDEX.list(self._tables_page(base_id), payload.search)

    @dictionary("get-fields")
    async def get_fields_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        base_id, table_id_or_name = self.require_keys(
            payload.criteria, "baseId", "tableIdOrName", system=self.system
        )

        async def fetch_page(cursor: Any) -> RemotePage:
            table = await self.get_table_schema(base_id, table_id_or_name)
            return RemotePage(items=(table or {}).get("fields", []))

        return await FIELDS_INDEX.list(fetch_page, payload.search)

    @dictionary("get-last-modified-columns")
    async def get_last_modified_columns_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        """Timestamp columns usable as the watch field of onNewOrUpdatedRecord."""
        base_id, table_id_or_name = self.require_keys(
            payload.criteria, "baseId", "tableIdOrName", system=self.system
        )

        async def fetch_page(cursor: Any) -> RemotePage:
            table = await self.get_table_schema(base_id, table_id_or_name)
            columns = [
                field
                for field in (table or {}).get("fields", [])
                if field.get("type") == LAST_MODIFIED_TIME_TYPE
            ]
            return RemotePage(items=columns)

        return await LAST_MODIFIED_INDEX.list(fetch_page, payload.search)

    @dictionary("get-records")
    async def get_records_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        base_id, table_id_or_name = self.require_keys(
            payload.criteria, "baseId", "tableIdOrName", system=self.system
        )

        async def fetch_page(cursor: Any) -> RemotePage:
            data = await self._api_request(
                self._table_url(base_id, table_id_or_name),
                query={"pageSize": DEFAULT_LIMIT, "offset": cursor},
                log_tag="getRecordsDictionary",
            )
            return RemotePage(items=data.get("records") or [], next_cursor=data.get("offset"))

        return await RECORDS_INDEX.list(fetch_page, payload.search, payload.cursor)

    @dictionary("get-comments")
    async def get_comments_dictionary(self, payload: DictionaryPayload) -> DictionaryPage:
        base_id, table_id_or_name, record_id = self.require_keys(
            payload.criteria, "baseId", "tableIdOrName", "recordId", system=self.system
        )
        url = f"{self._table_url(base_id, table_id_or_name)}/{quote(record_id, safe='')}/comments"

        async def fetch_page(cursor: Any) -> RemotePage:
            data = await self._api_request(
                url,
                query={"pageSize": DEFAULT_LIMIT, "offset": cursor},
                log_tag="getCommentsDictionary",
            )
            return RemotePage(items=data.get("comments") or [], next_cursor=data.get("offset"))

        return await COMMENTS_INDEX.list(fetch_page, payload.search, payload.cursor)
