"""Entity, Snapshot and Delta models for polling change detection.

- Entity: one remote record (stable ``id`` + untyped ``fields``)
- Snapshot: the entities considered relevant at one poll, owned by the host
- Delta: the events of one poll plus the snapshot to persist for the next one
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """A remote record.

    Provider keys beyond ``id`` and ``fields`` (e.g. Airtable's
    ``createdTime``) are preserved so events reach the host unchanged.
    """

    id: str = Field(..., description="Stable identifier, unique within its collection")
    fields: dict[str, Any] = Field(default_factory=dict, description="Field name -> value")

    model_config = ConfigDict(extra="allow", frozen=True)

    def watch_value(self, watch_field: str) -> Any:
        """Current value of the watch field, None when the field is absent."""
        return self.fields.get(watch_field)


class Snapshot(BaseModel):
    """Entities recorded as already seen at the last successful poll."""

    records: list[Entity] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_state(cls, state: dict[str, Any] | None) -> "Snapshot | None":
        """Read the host's opaque state blob.

        ``None``, ``{}`` or a blob without ``records`` means first run; an
        empty ``records`` list is a valid, initialized snapshot.
        """
        if not state or state.get("records") is None:
            return None
        return cls.model_validate(state)

    def to_state(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def ids(self) -> set[str]:
        return {record.id for record in self.records}

    def watch_values(self, watch_field: str) -> dict[str, Any]:
        return {record.id: record.watch_value(watch_field) for record in self.records}


class DetectMode(str, Enum):
    """How a single detection treats the previous snapshot."""

    LEARNING = "learning"  # Preview only, no state read or written
    BOOTSTRAP = "bootstrap"  # First activation, establish the baseline
    INCREMENTAL = "incremental"  # Diff against the previous snapshot

    @classmethod
    def resolve(cls, previous: Snapshot | None, learning_mode: bool = False) -> "DetectMode":
        if learning_mode:
            return cls.LEARNING
        if previous is None:
            return cls.BOOTSTRAP
        return cls.INCREMENTAL


class Delta(BaseModel):
    """Result of one detection."""

    events: list[Entity] = Field(default_factory=list)
    next_snapshot: Snapshot | None = None
    mode: DetectMode

    model_config = ConfigDict(frozen=True)
