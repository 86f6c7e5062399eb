from dataclasses import dataclass
from typing import Optional

# Defaults for the ranking pipeline
PIPELINE_DEFAULTS = {
    'TOP_N': 20,
    'GRID_SAFETY_LIMIT': 5_000_000,
    'MIN_TOTAL_PLAYS': 0,
    'BOUNDARY_TIES': 'strict',
    'PERIOD_LABEL_FORMAT': '%b %Y',
    'MAX_ISSUE_SAMPLES': 5,
}

BOUNDARY_TIE_MODES = ('strict', 'include')


@dataclass(frozen=True)
class PipelineConfig:
    """
    Options for a pipeline run.

    Args:
        top_n: Rank cutoff K, also the constant of the ordering axis (K + 1 - rank).
        base_year: Year used as the period_id origin; derived from the earliest event when None.
        grid_safety_limit: Maximum number of entity x period cells the grid may hold.
        min_total_plays: Drop entities with fewer lifetime plays before building the grid (0 disables).
        boundary_ties: 'strict' keeps exactly K rows, 'include' also keeps rows tied with the K-th.
        strict: Raise EmptyInputError instead of returning an empty result.
        period_label_format: strftime format for period labels.
        max_issue_samples: How many skipped events to keep as samples in the issue summary.
    """
    top_n: int = PIPELINE_DEFAULTS['TOP_N']
    base_year: Optional[int] = None
    grid_safety_limit: int = PIPELINE_DEFAULTS['GRID_SAFETY_LIMIT']
    min_total_plays: int = PIPELINE_DEFAULTS['MIN_TOTAL_PLAYS']
    boundary_ties: str = PIPELINE_DEFAULTS['BOUNDARY_TIES']
    strict: bool = False
    period_label_format: str = PIPELINE_DEFAULTS['PERIOD_LABEL_FORMAT']
    max_issue_samples: int = PIPELINE_DEFAULTS['MAX_ISSUE_SAMPLES']

    def __post_init__(self):
        if self.top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {self.top_n}")
        if self.grid_safety_limit < 1:
            raise ValueError(f"grid_safety_limit must be positive, got {self.grid_safety_limit}")
        if self.min_total_plays < 0:
            raise ValueError(f"min_total_plays cannot be negative, got {self.min_total_plays}")
        if self.boundary_ties not in BOUNDARY_TIE_MODES:
            raise ValueError(
                f"boundary_ties must be one of {BOUNDARY_TIE_MODES}, got {self.boundary_ties!r}"
            )
        if self.max_issue_samples < 0:
            raise ValueError(f"max_issue_samples cannot be negative, got {self.max_issue_samples}")
