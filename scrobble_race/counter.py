import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from .errors import UnsortableEventError
from .events import NormalizedEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountedEvent:
    """A normalized event annotated with its entity's lifetime play count so far."""
    entity: str
    timestamp: datetime
    period_id: int
    period_label: str
    running_count: int
    sequence: int


def partition_by_entity(events: Iterable[NormalizedEvent]) -> Dict[str, List[NormalizedEvent]]:
    """Group events by entity, keeping input order inside each group."""
    partitions: Dict[str, List[NormalizedEvent]] = {}
    for event in events:
        partitions.setdefault(event.entity, []).append(event)
    return partitions


def count_entity_events(entity: str, events: List[NormalizedEvent]) -> List[CountedEvent]:
    """
    Sort one entity's events chronologically and number them 1, 2, 3, ...

    The sort is stable, so plays sharing a timestamp keep their input order.
    """
    try:
        ordered = sorted(events, key=lambda e: e.timestamp)
    except TypeError as e:
        raise UnsortableEventError(entity, str(e)) from e

    counted = []
    running = 0
    for event in ordered:
        running += 1
        counted.append(CountedEvent(entity=event.entity,
                                    timestamp=event.timestamp,
                                    period_id=event.period_id,
                                    period_label=event.period_label,
                                    running_count=running,
                                    sequence=event.sequence))
    return counted


def assign_running_counts(events: Iterable[NormalizedEvent]) -> Dict[str, List[CountedEvent]]:
    """Annotate every event with its running count, returned per entity in chronological order."""
    partitions = partition_by_entity(events)
    counted = {entity: count_entity_events(entity, group) for entity, group in partitions.items()}
    logger.info("Counted plays for %d entities", len(counted))
    return counted
