"""
Dense entity x period grid of forward-filled cumulative play counts.

Counts are kept sparse (entity -> period_id -> count at the end of that period)
and expanded over the full contiguous period range only on demand, one entity
at a time. For every entity the filled count is 0 before its first play and
carries the last known value through silent months, so a bar never vanishes
and reappears between frames.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Tuple

import pandas as pd
from tqdm import tqdm

from .config import PIPELINE_DEFAULTS
from .counter import CountedEvent
from .errors import GridTooLargeError
from .events import period_label

logger = logging.getLogger(__name__)

GRID_COLUMNS = ['entity', 'period_id', 'period_label', 'filled_count']


def build_snapshots(counted: Mapping[str, List[CountedEvent]]) -> Dict[str, Dict[int, int]]:
    """Highest running count per (entity, period) that has at least one play."""
    snapshots: Dict[str, Dict[int, int]] = {}
    for entity, events in counted.items():
        periods: Dict[int, int] = {}
        for event in events:
            if event.running_count > periods.get(event.period_id, 0):
                periods[event.period_id] = event.running_count
        snapshots[entity] = dict(sorted(periods.items()))
    return snapshots


def filter_entities(counted: Mapping[str, List[CountedEvent]], min_total_plays: int) -> Dict[str, List[CountedEvent]]:
    """Drop entities with fewer than min_total_plays lifetime plays."""
    if min_total_plays <= 0:
        return dict(counted)
    kept = {entity: events for entity, events in counted.items() if len(events) >= min_total_plays}
    logger.info("Pre-filter kept %d of %d entities (min %d plays)", len(kept), len(counted), min_total_plays)
    return kept


def check_grid_size(entity_count: int, period_count: int, limit: int) -> None:
    if entity_count * period_count > limit:
        raise GridTooLargeError(entity_count, period_count, limit)


def fill_forward(snapshots: Mapping[int, int], periods: range) -> Iterator[Tuple[int, int]]:
    """
    Walk a contiguous period range and yield (period_id, filled_count).

    snapshots must be keyed by period_id in ascending order.
    """
    pending = iter(snapshots.items())
    next_snapshot = next(pending, None)
    last_known = 0
    for period_id in periods:
        while next_snapshot is not None and next_snapshot[0] < period_id:
            next_snapshot = next(pending, None)
        if next_snapshot is not None and next_snapshot[0] == period_id:
            last_known = max(next_snapshot[1], last_known)
            next_snapshot = next(pending, None)
        yield period_id, last_known


@dataclass
class PeriodGrid:
    snapshots: Dict[str, Dict[int, int]]
    periods: range
    base_year: int
    labels: Dict[int, str]
    label_format: str = PIPELINE_DEFAULTS['PERIOD_LABEL_FORMAT']

    @property
    def entities(self) -> List[str]:
        return sorted(self.snapshots)

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.snapshots), len(self.periods)

    def __len__(self) -> int:
        return len(self.snapshots) * len(self.periods)

    def label_for(self, period_id: int) -> str:
        if period_id not in self.labels:
            self.labels[period_id] = period_label(period_id, self.base_year, self.label_format)
        return self.labels[period_id]

    def filled_counts(self, entity: str) -> List[int]:
        return [count for _, count in fill_forward(self.snapshots[entity], self.periods)]

    def cells(self) -> Iterator[Tuple[str, int, int]]:
        """Yield (entity, period_id, filled_count) for every cell, entity by entity."""
        for entity in self.entities:
            for period_id, count in fill_forward(self.snapshots[entity], self.periods):
                yield entity, period_id, count

    def to_frame(self, progress: bool = False) -> pd.DataFrame:
        """Materialize the full grid as a DataFrame with GRID_COLUMNS."""
        entities, period_ids, counts = [], [], []
        for entity in tqdm(self.entities, desc="Filling periods", disable=not progress):
            for period_id, count in fill_forward(self.snapshots[entity], self.periods):
                entities.append(entity)
                period_ids.append(period_id)
                counts.append(count)
        frame = pd.DataFrame({
            'entity': pd.Series(entities, dtype='object'),
            'period_id': pd.Series(period_ids, dtype='int64'),
            'filled_count': pd.Series(counts, dtype='int64'),
        })
        frame['period_label'] = frame['period_id'].map({pid: self.label_for(pid) for pid in self.periods})
        return frame[GRID_COLUMNS]


def fill_grid(counted: Mapping[str, List[CountedEvent]],
              base_year: int,
              safety_limit: int = PIPELINE_DEFAULTS['GRID_SAFETY_LIMIT'],
              label_format: str = PIPELINE_DEFAULTS['PERIOD_LABEL_FORMAT']) -> PeriodGrid:
    """
    Aggregate counted events into a forward-filled grid over the full period range.

    Raises GridTooLargeError before any cell is expanded when the entity x period
    product exceeds safety_limit.
    """
    snapshots = build_snapshots(counted)
    observed = [pid for periods in snapshots.values() for pid in periods]
    if not observed:
        return PeriodGrid(snapshots={}, periods=range(0), base_year=base_year, labels={}, label_format=label_format)

    periods = range(min(observed), max(observed) + 1)
    check_grid_size(len(snapshots), len(periods), safety_limit)

    labels = {}
    for events in counted.values():
        for event in events:
            labels.setdefault(event.period_id, event.period_label)

    logger.info("Grid spans %d entities x %d periods (%d observed)",
                len(snapshots), len(periods), len(set(observed)))
    return PeriodGrid(snapshots=snapshots, periods=periods, base_year=base_year,
                      labels=labels, label_format=label_format)
