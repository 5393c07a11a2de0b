"""CursorPaginatedSearchIndex - list + locally filter + paginate for selectors.

Filtering only ever applies to the page that was fetched; it is not a global
search across pages. The returned cursor is the only continuation signal.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

from trigger_kit.models.dictionary import DictionaryItem, DictionaryPage, RemotePage

logger = logging.getLogger(__name__)

PLACEHOLDER_LABEL = "[empty]"

FetchPage = Callable[[Any], Awaitable[RemotePage]]
Projector = Callable[[dict[str, Any]], DictionaryItem]


def _contains(value: Any, needle: str) -> bool:
    if value is None:
        return False
    return needle in str(value).lower()


def search_filter(
    items: Iterable[dict[str, Any]], fields: Sequence[str], search: str | None
) -> list[dict[str, Any]]:
    """Keep items where any of ``fields`` contains ``search`` (case-insensitive)."""
    items = list(items)
    needle = (search or "").lower()
    if not needle:
        return items
    return [item for item in items if any(_contains(item.get(field), needle) for field in fields)]


def id_note(item_id: Any) -> str:
    return f"ID: {item_id}"


def label_or_placeholder(value: Any) -> str:
    return str(value) if value not in (None, "") else PLACEHOLDER_LABEL


class CursorPaginatedSearchIndex:
    """One selector source: which fields are searchable and how items project.

    Usage:
        index = CursorPaginatedSearchIndex(
            fields=["id", "name"],
            project=lambda base: DictionaryItem(label=..., value=base["id"], note=...),
        )
        page = await index.list(fetch_bases_page, search="sales", cursor=cursor)
    """

    def __init__(self, fields: Sequence[str], project: Projector, name: str = "dictionary") -> None:
        self.fields = list(fields)
        self.project = project
        self.name = name

    async def list(
        self,
        fetch_page: FetchPage,
        search: str | None = None,
        cursor: Any = None,
    ) -> DictionaryPage:
        """Fetch exactly one page, filter it locally and project it."""
        page = await fetch_page(cursor)
        matched = search_filter(page.items, self.fields, search)

        logger.debug(
            f"[{self.name}] fetched={len(page.items)} matched={len(matched)} "
            f"has_more={page.next_cursor is not None}"
        )

        return DictionaryPage(
            items=[self.project(item) for item in matched],
            cursor=page.next_cursor,
        )

    @staticmethod
    async def find(
        fetch_page: FetchPage,
        key: Any,
        fields: Sequence[str] = ("id", "name"),
    ) -> dict[str, Any] | None:
        """Single full-collection fetch and exact client-side lookup by id or name."""
        page = await fetch_page(None)
        for item in page.items:
            if any(item.get(field) == key for field in fields):
                return item
        return None
