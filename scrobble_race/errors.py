"""Error taxonomy for the listening-history race pipeline."""
from dataclasses import dataclass, field
from typing import Any, List, Optional


class ScrobbleRaceError(Exception):
    """Base class for every pipeline error."""


class MalformedEventError(ScrobbleRaceError):
    """A raw play event is incomplete or its timestamp cannot be parsed."""

    def __init__(self, message: str, index: Optional[int] = None, event: Any = None):
        super().__init__(message)
        self.index = index
        self.event = event


class UnsortableEventError(ScrobbleRaceError):
    """An entity's timestamps cannot be put in a total order."""

    def __init__(self, entity: str, detail: str = ""):
        message = f"Timestamps for entity {entity!r} are not totally comparable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.entity = entity


class GridTooLargeError(ScrobbleRaceError):
    """The entity x period grid would exceed the configured safety limit."""

    def __init__(self, entity_count: int, period_count: int, limit: int):
        super().__init__(
            f"Grid of {entity_count:,} entities x {period_count:,} periods "
            f"= {entity_count * period_count:,} cells exceeds the limit of {limit:,}; "
            f"raise the limit or pre-filter low-activity entities"
        )
        self.entity_count = entity_count
        self.period_count = period_count
        self.limit = limit


class EmptyInputError(ScrobbleRaceError):
    """No valid events were available to build a series from."""


@dataclass
class IssueSummary:
    """Aggregate of recoverable per-event errors: a count plus a few samples."""

    max_samples: int = 5
    count: int = 0
    samples: List[MalformedEventError] = field(default_factory=list)

    def record(self, error: MalformedEventError) -> None:
        self.count += 1
        if len(self.samples) < self.max_samples:
            self.samples.append(error)

    def __bool__(self) -> bool:
        return self.count > 0

    def describe(self) -> str:
        if not self.count:
            return "no skipped events"
        lines = [f"{self.count} event(s) skipped"]
        for sample in self.samples:
            where = f"#{sample.index}: " if sample.index is not None else ""
            lines.append(f"  {where}{sample}")
        if self.count > len(self.samples):
            lines.append(f"  ... and {self.count - len(self.samples)} more")
        return "\n".join(lines)
