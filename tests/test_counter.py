from datetime import datetime, timezone

import pytest

from scrobble_race.counter import assign_running_counts, count_entity_events
from scrobble_race.errors import UnsortableEventError
from scrobble_race.events import NormalizedEvent, RawEvent, normalize_events


def test_running_counts_follow_chronology_not_input_order():
    normalized = normalize_events([
        RawEvent("A", datetime(2020, 3, 1)),
        RawEvent("B", datetime(2020, 1, 1)),
        RawEvent("A", datetime(2020, 1, 1)),
        RawEvent("A", datetime(2020, 2, 1)),
    ])
    counted = assign_running_counts(normalized.events)

    assert [(e.period_id, e.running_count) for e in counted["A"]] == [(1, 1), (2, 2), (3, 3)]
    assert [(e.period_id, e.running_count) for e in counted["B"]] == [(1, 1)]


def test_running_count_never_resets_across_years():
    normalized = normalize_events([
        RawEvent("A", datetime(2020, 12, 31)),
        RawEvent("A", datetime(2021, 1, 1)),
        RawEvent("A", datetime(2023, 6, 1)),
    ])
    counted = assign_running_counts(normalized.events)
    assert [e.running_count for e in counted["A"]] == [1, 2, 3]
    assert [e.period_id for e in counted["A"]] == [12, 13, 42]


def test_equal_timestamps_keep_input_order():
    stamp = datetime(2020, 5, 5, 10, 0)
    normalized = normalize_events([
        RawEvent("A", datetime(2020, 5, 6)),
        RawEvent("A", stamp),
        RawEvent("A", stamp),
        RawEvent("A", stamp),
    ])
    counted = assign_running_counts(normalized.events)["A"]
    assert [e.sequence for e in counted] == [1, 2, 3, 0]
    assert [e.running_count for e in counted] == [1, 2, 3, 4]


def test_mixed_naive_and_aware_timestamps_are_unsortable():
    events = [
        NormalizedEvent("A", datetime(2020, 1, 1), 1, "Jan 2020", 0),
        NormalizedEvent("A", datetime(2020, 1, 2, tzinfo=timezone.utc), 1, "Jan 2020", 1),
    ]
    with pytest.raises(UnsortableEventError) as excinfo:
        count_entity_events("A", events)
    assert excinfo.value.entity == "A"


def test_counting_does_not_mutate_input():
    normalized = normalize_events([
        RawEvent("A", datetime(2020, 2, 1)),
        RawEvent("A", datetime(2020, 1, 1)),
    ])
    before = list(normalized.events)
    assign_running_counts(normalized.events)
    assert normalized.events == before
