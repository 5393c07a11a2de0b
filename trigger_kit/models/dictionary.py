"""Pydantic models for dictionary (selector population) requests."""

from typing import Any

from pydantic import BaseModel, Field


class DictionaryPayload(BaseModel):
    """Inbound dictionary request."""

    search: str | None = Field(None, description="Free-text filter applied to the fetched page")
    cursor: Any = Field(None, description="Opaque cursor returned by the previous page")
    criteria: dict[str, Any] = Field(default_factory=dict, description="Parent identifiers")


class DictionaryItem(BaseModel):
    """One selectable entry."""

    label: str
    value: Any
    note: str = ""


class DictionaryPage(BaseModel):
    """One page of selector items; ``cursor=None`` ends pagination."""

    items: list[DictionaryItem] = Field(default_factory=list)
    cursor: Any = None


class RemotePage(BaseModel):
    """One raw page as returned by a remote listing call."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    next_cursor: Any = None
