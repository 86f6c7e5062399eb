"""Run the full normalize -> count -> fill -> rank -> export pipeline."""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .config import PipelineConfig
from .counter import assign_running_counts
from .errors import EmptyInputError, IssueSummary
from .events import normalize_events
from .exporter import export_series
from .grid import PeriodGrid, fill_grid, filter_entities
from .ranker import RankedRow, rank_periods

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    rows: List[RankedRow]
    issues: IssueSummary
    config: PipelineConfig
    base_year: Optional[int] = None
    event_count: int = 0
    grid: Optional[PeriodGrid] = None
    empty_error: Optional[EmptyInputError] = None

    @property
    def entity_count(self) -> int:
        return self.grid.shape[0] if self.grid is not None else 0

    @property
    def period_count(self) -> int:
        return self.grid.shape[1] if self.grid is not None else 0

    @property
    def period_labels(self) -> List[str]:
        if self.grid is None:
            return []
        return [self.grid.label_for(pid) for pid in self.grid.periods]


def _empty(message: str, config: PipelineConfig, issues: IssueSummary, **kwargs) -> PipelineResult:
    error = EmptyInputError(message)
    if config.strict:
        raise error
    logger.info("%s; producing empty output", message)
    return PipelineResult(rows=[], issues=issues, config=config, empty_error=error, **kwargs)


def run_pipeline(raw_events: Iterable[Any],
                 config: Optional[PipelineConfig] = None,
                 progress: bool = False) -> PipelineResult:
    """
    Turn raw play events into ranked, period-ordered rows ready for rendering.

    Malformed events are skipped and reported in result.issues. Structural
    problems (GridTooLargeError, UnsortableEventError) propagate. With
    config.strict, an input without valid events raises EmptyInputError.
    """
    config = config or PipelineConfig()

    normalized = normalize_events(raw_events,
                                  base_year=config.base_year,
                                  label_format=config.period_label_format,
                                  max_issue_samples=config.max_issue_samples)
    issues = normalized.issues
    if not normalized.events:
        return _empty("No valid play events", config, issues, base_year=normalized.base_year)

    counted = filter_entities(assign_running_counts(normalized.events), config.min_total_plays)
    if not counted:
        return _empty(f"No entity has at least {config.min_total_plays} plays", config, issues,
                      base_year=normalized.base_year, event_count=len(normalized.events))

    grid = fill_grid(counted,
                     base_year=normalized.base_year,
                     safety_limit=config.grid_safety_limit,
                     label_format=config.period_label_format)
    # every entity must be filled before any period can be ranked
    grid_frame = grid.to_frame(progress=progress)
    ranked = rank_periods(grid_frame, top_n=config.top_n, boundary_ties=config.boundary_ties)

    return PipelineResult(rows=export_series(ranked),
                          issues=issues,
                          config=config,
                          base_year=normalized.base_year,
                          event_count=len(normalized.events),
                          grid=grid)
