"""Monthly cumulative artist rankings from a listening history, ready for a bar race."""
from .config import PIPELINE_DEFAULTS, PipelineConfig
from .errors import (
    EmptyInputError,
    GridTooLargeError,
    IssueSummary,
    MalformedEventError,
    ScrobbleRaceError,
    UnsortableEventError,
)
from .events import RawEvent, normalize_events
from .exporter import export_series, to_frame, write_csv, write_json
from .pipeline import PipelineResult, run_pipeline
from .ranker import RankedRow

__version__ = "0.1.0"

__all__ = [
    "PIPELINE_DEFAULTS",
    "PipelineConfig",
    "EmptyInputError",
    "GridTooLargeError",
    "IssueSummary",
    "MalformedEventError",
    "ScrobbleRaceError",
    "UnsortableEventError",
    "RawEvent",
    "normalize_events",
    "export_series",
    "to_frame",
    "write_csv",
    "write_json",
    "PipelineResult",
    "run_pipeline",
    "RankedRow",
]
