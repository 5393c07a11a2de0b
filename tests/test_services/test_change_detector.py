"""Tests for PollingChangeDetector."""

import pytest

from trigger_kit.errors import RemoteError
from trigger_kit.models.entity import DetectMode, Entity, Snapshot
from trigger_kit.services.change_detector import PollingChangeDetector


def record(record_id: str, modified: str | None = None) -> Entity:
    fields = {"Modified": modified} if modified is not None else {}
    return Entity(id=record_id, fields=fields)


def fetching(*entities: Entity):
    """A fetch_current that returns ``entities`` and counts its calls."""

    async def fetch_current() -> list[Entity]:
        fetch_current.calls += 1
        return list(entities)

    fetch_current.calls = 0
    return fetch_current


@pytest.fixture
def detector() -> PollingChangeDetector:
    return PollingChangeDetector(log_tag="test")


class TestBootstrap:
    """The first poll establishes the baseline without firing."""

    async def test_no_previous_snapshot_fires_nothing(self, detector):
        fetch = fetching(record("r1", "t1"), record("r2", "t2"))

        delta = await detector.detect(fetch, None, watch_field="Modified")

        assert delta.mode == DetectMode.BOOTSTRAP
        assert delta.events == []
        assert delta.next_snapshot.ids() == {"r1", "r2"}
        assert fetch.calls == 1

    async def test_incremental_request_without_snapshot_bootstraps(self, detector):
        fetch = fetching(record("r1", "t1"))

        delta = await detector.detect(
            fetch, None, watch_field="Modified", mode=DetectMode.INCREMENTAL
        )

        assert delta.mode == DetectMode.BOOTSTRAP
        assert delta.events == []
        assert [entity.id for entity in delta.next_snapshot.records] == ["r1"]

    async def test_incremental_request_without_snapshot_never_diffs(self, detector):
        fetch = fetching(record("r1"), record("r2"))

        delta = await detector.detect(fetch, None, mode=DetectMode.INCREMENTAL)

        assert delta.mode == DetectMode.BOOTSTRAP
        assert delta.events == []
        assert len(delta.next_snapshot.records) == 2

    async def test_empty_fetch_gives_initialized_empty_snapshot(self, detector):
        delta = await detector.detect(fetching(), None, watch_field="Modified")

        assert delta.events == []
        assert delta.next_snapshot == Snapshot(records=[])
        # An empty list is a valid baseline, not "first run" again
        assert Snapshot.from_state(delta.next_snapshot.to_state()) == Snapshot(records=[])


class TestIncremental:
    """Diffing against a previous snapshot."""

    async def test_changed_and_new_records_in_fetch_order(self, detector):
        previous = Snapshot(records=[record("r1", "t1")])
        current = [record("r1", "t2"), record("r2", "t3")]

        delta = await detector.detect(fetching(*current), previous, watch_field="Modified")

        assert delta.mode == DetectMode.INCREMENTAL
        assert [entity.id for entity in delta.events] == ["r1", "r2"]
        assert delta.next_snapshot.records == current

    async def test_unchanged_records_do_not_fire(self, detector):
        previous = Snapshot(records=[record("r1", "t1"), record("r2", "t2")])
        current = [record("r2", "t2"), record("r1", "t1")]

        delta = await detector.detect(fetching(*current), previous, watch_field="Modified")

        assert delta.events == []

    async def test_second_poll_without_changes_is_empty(self, detector):
        fetch = fetching(record("r1", "t1"), record("r2", "t2"))

        first = await detector.detect(fetch, None, watch_field="Modified")
        second = await detector.detect(fetch, first.next_snapshot, watch_field="Modified")
        third = await detector.detect(fetch, second.next_snapshot, watch_field="Modified")

        assert second.events == []
        assert third.events == []

    async def test_creation_only_ignores_watch_value_changes(self, detector):
        previous = Snapshot(records=[record("r1", "t1")])
        current = [record("r1", "t9"), record("r2", "t2")]

        delta = await detector.detect(fetching(*current), previous, watch_field=None)

        assert [entity.id for entity in delta.events] == ["r2"]

    async def test_field_becoming_absent_counts_as_change(self, detector):
        previous = Snapshot(records=[record("r1", "t1")])

        delta = await detector.detect(fetching(record("r1")), previous, watch_field="Modified")

        assert [entity.id for entity in delta.events] == ["r1"]

    async def test_snapshot_is_replaced_wholesale(self, detector):
        """A record that drops out of the window and comes back is new again."""
        fetch_with = fetching(record("r1", "t1"), record("r2", "t2"))
        fetch_without = fetching(record("r1", "t1"))

        first = await detector.detect(fetch_with, None, watch_field="Modified")
        second = await detector.detect(fetch_without, first.next_snapshot, watch_field="Modified")
        third = await detector.detect(fetch_with, second.next_snapshot, watch_field="Modified")

        assert second.events == []
        assert second.next_snapshot.ids() == {"r1"}
        assert [entity.id for entity in third.events] == ["r2"]

    async def test_empty_fetch_clears_snapshot(self, detector):
        previous = Snapshot(records=[record("r1", "t1")])

        delta = await detector.detect(fetching(), previous, watch_field="Modified")

        assert delta.events == []
        assert delta.next_snapshot.records == []

    def test_changed_entities_against_arbitrary_snapshots(self):
        """An entity fires iff its id is unseen or its watch value differs."""
        previous = Snapshot(records=[record("a", "1"), record("b", "2"), record("c", "3")])
        current = [record("a", "1"), record("b", "5"), record("d", "1"), record("c", "3")]

        changed = PollingChangeDetector.changed_entities(current, previous, "Modified")

        assert [entity.id for entity in changed] == ["b", "d"]


class TestLearningMode:
    """Learning mode samples without reading or writing state."""

    async def test_returns_first_record_and_no_state(self, detector):
        previous = Snapshot(records=[record("r1", "t1")])
        fetch = fetching(record("r1", "t1"), record("r2", "t2"))

        delta = await detector.detect(
            fetch, previous, watch_field="Modified", mode=DetectMode.LEARNING
        )

        # r1 is already in the snapshot but is still returned as the sample
        assert [entity.id for entity in delta.events] == ["r1"]
        assert delta.next_snapshot is None

    async def test_without_snapshot(self, detector):
        delta = await detector.detect(
            fetching(record("r1")), None, mode=DetectMode.LEARNING
        )

        assert delta.mode == DetectMode.LEARNING
        assert [entity.id for entity in delta.events] == ["r1"]
        assert delta.next_snapshot is None

    async def test_empty_table(self, detector):
        delta = await detector.detect(fetching(), None, mode=DetectMode.LEARNING)

        assert delta.events == []
        assert delta.next_snapshot is None


class TestFetchFailure:
    async def test_remote_error_propagates(self, detector):
        async def failing_fetch():
            raise RemoteError("[AirtableError]: boom", http_status_code=500, system="airtable")

        with pytest.raises(RemoteError):
            await detector.detect(failing_fetch, Snapshot(records=[]), watch_field="Modified")


class TestDetectMode:
    def test_resolve(self):
        assert DetectMode.resolve(None) == DetectMode.BOOTSTRAP
        assert DetectMode.resolve(Snapshot(records=[])) == DetectMode.INCREMENTAL
        assert DetectMode.resolve(None, learning_mode=True) == DetectMode.LEARNING
        assert DetectMode.resolve(Snapshot(records=[]), learning_mode=True) == DetectMode.LEARNING

    def test_snapshot_from_state(self):
        assert Snapshot.from_state(None) is None
        assert Snapshot.from_state({}) is None
        assert Snapshot.from_state({"other": 1}) is None

        snapshot = Snapshot.from_state(
            {"records": [{"id": "r1", "fields": {"Modified": "t1"}, "createdTime": "t0"}]}
        )
        assert snapshot.ids() == {"r1"}
        assert snapshot.watch_values("Modified") == {"r1": "t1"}
        # Provider keys survive the round trip through host state
        assert snapshot.to_state()["records"][0]["createdTime"] == "t0"
