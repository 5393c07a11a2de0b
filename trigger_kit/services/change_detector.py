"""PollingChangeDetector - turns "list current entities" into new/changed events.

The detector keeps no state of its own. The previous snapshot comes in from
the host and the next one goes back out in the returned Delta:

    uninitialized --bootstrap--> initialized --incremental--> initialized

Learning mode is a side channel that samples one entity and never touches
state. A failing fetch propagates, so the host keeps the previous snapshot
and retries on its next scheduled poll.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from trigger_kit.models.entity import Delta, DetectMode, Entity, Snapshot

logger = logging.getLogger(__name__)

FetchCurrent = Callable[[], Awaitable[Sequence[Entity]]]


class PollingChangeDetector:
    """Computes the delta between a fresh listing and the previous snapshot.

    Usage:
        detector = PollingChangeDetector(log_tag="onNewOrUpdatedRecord")
        delta = await detector.detect(fetch, previous, watch_field="Last Modified")
    """

    def __init__(self, log_tag: str = "detect") -> None:
        self.log_tag = log_tag

    async def detect(
        self,
        fetch_current: FetchCurrent,
        previous_snapshot: Snapshot | None,
        watch_field: str | None = None,
        mode: DetectMode | None = None,
    ) -> Delta:
        """Fetch once and diff against the previous snapshot.

        Args:
            fetch_current: Performs one remote listing, newest first
            previous_snapshot: Snapshot from the last successful poll, None on first run
            watch_field: Field whose change marks an entity as updated; None
                detects creations only (id membership)
            mode: Requested mode; defaults to ``DetectMode.resolve(previous_snapshot)``

        Returns:
            Delta with the events (in fetch order) and the snapshot to persist
        """
        if mode is None:
            mode = DetectMode.resolve(previous_snapshot)

        current = list(await fetch_current())

        if mode == DetectMode.LEARNING:
            sample = current[:1]
            logger.debug(
                f"[{self.log_tag}] learning mode, sample id={sample[0].id if sample else None}"
            )
            return Delta(events=sample, next_snapshot=None, mode=mode)

        # An incremental request without a baseline bootstraps instead
        if mode == DetectMode.BOOTSTRAP or previous_snapshot is None:
            logger.debug(f"[{self.log_tag}] init with records={len(current)}")
            return Delta(
                events=[], next_snapshot=Snapshot(records=current), mode=DetectMode.BOOTSTRAP
            )

        events = self.changed_entities(current, previous_snapshot, watch_field)
        logger.debug(
            f"[{self.log_tag}] records={len(current)} previous={len(previous_snapshot.records)} "
            f"events={len(events)}"
        )
        return Delta(events=events, next_snapshot=Snapshot(records=current), mode=mode)

    @staticmethod
    def changed_entities(
        current: Sequence[Entity],
        previous_snapshot: Snapshot,
        watch_field: str | None = None,
    ) -> list[Entity]:
        """Entities whose id is unseen or whose watch value differs."""
        if watch_field is None:
            seen_ids = previous_snapshot.ids()
            return [entity for entity in current if entity.id not in seen_ids]

        seen: dict[str, Any] = previous_snapshot.watch_values(watch_field)
        return [
            entity
            for entity in current
            if entity.id not in seen or entity.watch_value(watch_field) != seen[entity.id]
        ]
