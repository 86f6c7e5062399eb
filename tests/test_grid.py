from datetime import datetime

import pytest

from scrobble_race.counter import assign_running_counts
from scrobble_race.errors import GridTooLargeError
from scrobble_race.events import RawEvent, normalize_events
from scrobble_race.grid import (
    GRID_COLUMNS,
    build_snapshots,
    fill_forward,
    fill_grid,
    filter_entities,
)


def _grid(raw_events, label_format="%b %Y", **kwargs):
    normalized = normalize_events(raw_events, label_format=label_format)
    counted = assign_running_counts(normalized.events)
    return fill_grid(counted, base_year=normalized.base_year, label_format=label_format, **kwargs)


def test_two_artist_scenario(two_artist_events):
    grid = _grid(two_artist_events)

    assert list(grid.periods) == [1, 2, 3]
    assert grid.filled_counts("A") == [3, 5, 5]
    assert grid.filled_counts("B") == [0, 0, 2]


def test_snapshots_hold_highest_count_per_period(two_artist_events):
    normalized = normalize_events(two_artist_events)
    snapshots = build_snapshots(assign_running_counts(normalized.events))
    assert snapshots == {"A": {1: 3, 2: 5}, "B": {3: 2}}


def test_silent_months_are_synthesized_and_carried(sparse_history):
    grid = _grid(sparse_history)

    # Nov 2019 .. Feb 2021
    assert grid.periods == range(11, 27)
    radiohead = grid.filled_counts("Radiohead")
    assert radiohead[:4] == [4, 4, 4, 4]
    assert radiohead[4] == 6
    assert radiohead[-1] == 7
    assert grid.label_for(16) == "Apr 2020"


def test_filled_counts_are_monotonic_and_zero_before_first_play(sparse_history):
    grid = _grid(sparse_history)
    for entity in grid.entities:
        counts = grid.filled_counts(entity)
        assert all(later >= earlier for earlier, later in zip(counts, counts[1:]))
        first = min(grid.snapshots[entity])
        offset = first - grid.periods.start
        assert counts[:offset] == [0] * offset
        assert counts[offset] > 0


def test_fill_forward_never_decreases():
    filled = list(fill_forward({2: 5, 4: 3}, range(1, 6)))
    assert filled == [(1, 0), (2, 5), (3, 5), (4, 5), (5, 5)]


def test_fill_forward_ignores_snapshots_outside_range():
    assert list(fill_forward({1: 2, 9: 4}, range(3, 5))) == [(3, 0), (4, 0)]


def test_grid_frame_covers_full_cartesian_product(sparse_history):
    grid = _grid(sparse_history)
    frame = grid.to_frame()

    assert list(frame.columns) == GRID_COLUMNS
    assert len(frame) == len(grid) == 4 * 16
    assert frame.groupby("entity")["period_id"].nunique().eq(16).all()
    assert frame.loc[frame["period_id"] == 16, "period_label"].unique().tolist() == ["Apr 2020"]


def test_cells_match_frame(two_artist_events):
    grid = _grid(two_artist_events)
    frame = grid.to_frame()
    assert list(grid.cells()) == list(frame[["entity", "period_id", "filled_count"]].itertuples(index=False, name=None))


def test_grid_larger_than_limit_is_rejected(sparse_history):
    with pytest.raises(GridTooLargeError) as excinfo:
        _grid(sparse_history, safety_limit=63)
    assert excinfo.value.entity_count == 4
    assert excinfo.value.period_count == 16
    assert excinfo.value.limit == 63

    assert len(_grid(sparse_history, safety_limit=64)) == 64


def test_prefilter_drops_low_activity_entities(sparse_history):
    normalized = normalize_events(sparse_history)
    counted = assign_running_counts(normalized.events)

    kept = filter_entities(counted, 5)
    assert sorted(kept) == ["Björk", "Portishead", "Radiohead"]
    assert filter_entities(counted, 0).keys() == counted.keys()


def test_empty_grid():
    grid = fill_grid({}, base_year=2020)
    assert len(grid) == 0
    assert grid.to_frame().empty


def test_custom_label_format_for_synthesized_periods():
    grid = _grid([RawEvent("A", datetime(2020, 1, 1)), RawEvent("A", datetime(2020, 4, 1))],
                 label_format="%Y-%m")
    assert [grid.label_for(pid) for pid in grid.periods] == ["2020-01", "2020-02", "2020-03", "2020-04"]
