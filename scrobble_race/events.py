"""
Play events and their normalization to monthly periods.

A period is a calendar month identified by an integer ``period_id``::

    period_id = month + (year - base_year) * 12

where ``base_year`` is the year of the earliest event, so January of the first
year is period 1 and May of the following year is period 17.
"""
import logging
import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple

import pandas as pd

from .config import PIPELINE_DEFAULTS
from .errors import IssueSummary, MalformedEventError

logger = logging.getLogger(__name__)

# Epoch values above this are treated as milliseconds
EPOCH_MILLISECONDS_THRESHOLD = 10000000000


@dataclass(frozen=True)
class RawEvent:
    """One observed play, as delivered by the ingestion side."""
    entity_name: Any
    timestamp: Any


@dataclass(frozen=True)
class NormalizedEvent:
    entity: str
    timestamp: datetime
    period_id: int
    period_label: str
    sequence: int


@dataclass
class NormalizationResult:
    events: List[NormalizedEvent]
    base_year: Optional[int]
    issues: IssueSummary = field(default_factory=IssueSummary)


def smart_convert_to_datetime(timestamp: float) -> datetime:
    """Convert an epoch timestamp to a naive UTC datetime, handling both seconds and milliseconds."""
    if timestamp < EPOCH_MILLISECONDS_THRESHOLD:
        seconds = timestamp
    else:
        seconds = timestamp / 1000
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a play timestamp into a naive UTC datetime.

    Accepts datetimes (aware ones are converted to UTC), dates, epoch numbers in
    seconds or milliseconds, numeric strings, and any date string pandas understands.
    Raises ValueError when the value cannot be interpreted.
    """
    if value is None or value is pd.NaT or isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    if isinstance(value, float) and math.isnan(value):
        raise ValueError("missing timestamp")

    if isinstance(value, datetime):
        parsed = value.to_pydatetime() if isinstance(value, pd.Timestamp) else value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, numbers.Real):
        try:
            parsed = smart_convert_to_datetime(float(value))
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"epoch out of range: {value!r}") from e
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty timestamp")
        try:
            epoch = float(text)
        except ValueError:
            epoch = None
        if epoch is not None:
            return parse_timestamp(epoch)
        try:
            stamp = pd.Timestamp(text)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"unparseable timestamp {value!r}") from e
        if pd.isna(stamp):
            raise ValueError(f"unparseable timestamp {value!r}")
        # datetime only holds microseconds
        parsed = stamp.floor('us').to_pydatetime()
    else:
        raise ValueError(f"unsupported timestamp type {type(value).__name__}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def period_id_for(year: int, month: int, base_year: int) -> int:
    return month + (year - base_year) * 12


def period_bounds(period_id: int, base_year: int) -> Tuple[int, int]:
    """Inverse of period_id_for: return (year, month) for a period id."""
    year_offset, month_index = divmod(period_id - 1, 12)
    return base_year + year_offset, month_index + 1


def period_label(period_id: int, base_year: int, label_format: str = PIPELINE_DEFAULTS['PERIOD_LABEL_FORMAT']) -> str:
    year, month = period_bounds(period_id, base_year)
    return datetime(year, month, 1).strftime(label_format)


def _unpack(raw: Any) -> Tuple[Any, Any]:
    if isinstance(raw, RawEvent):
        return raw.entity_name, raw.timestamp
    if isinstance(raw, Mapping):
        return raw.get("entity_name"), raw.get("timestamp")
    if isinstance(raw, tuple) and len(raw) == 2:
        return raw
    raise MalformedEventError(f"unrecognized event record of type {type(raw).__name__}")


def _validate(index: int, raw: Any) -> Tuple[str, datetime]:
    entity, timestamp = _unpack(raw)
    if entity is None or not isinstance(entity, str) or not entity.strip():
        raise MalformedEventError(f"missing entity name in {raw!r}", index=index, event=raw)
    try:
        parsed = parse_timestamp(timestamp)
    except ValueError as e:
        raise MalformedEventError(f"bad timestamp for {entity!r}: {e}", index=index, event=raw) from e
    return entity, parsed


def normalize_events(raw_events: Iterable[Any],
                     base_year: Optional[int] = None,
                     label_format: str = PIPELINE_DEFAULTS['PERIOD_LABEL_FORMAT'],
                     max_issue_samples: int = PIPELINE_DEFAULTS['MAX_ISSUE_SAMPLES']) -> NormalizationResult:
    """
    Resolve raw play events to (entity, timestamp, period) records.

    Malformed events are skipped and recorded in the returned issue summary.
    Entity names are passed through unchanged; repeated plays are kept.
    """
    issues = IssueSummary(max_samples=max_issue_samples)
    valid: List[Tuple[int, str, datetime]] = []
    for index, raw in enumerate(raw_events):
        try:
            entity, parsed = _validate(index, raw)
        except MalformedEventError as e:
            if e.index is None:
                e.index = index
                e.event = raw
            issues.record(e)
            continue
        valid.append((index, entity, parsed))

    if issues:
        logger.warning("Skipped %d malformed event(s)", issues.count)

    if not valid:
        return NormalizationResult(events=[], base_year=base_year, issues=issues)

    earliest_year = min(parsed.year for _, _, parsed in valid)
    if base_year is None:
        base_year = earliest_year
    elif base_year > earliest_year:
        raise ValueError(f"base_year {base_year} is later than the earliest event year {earliest_year}")

    labels = {}
    events = []
    for index, entity, parsed in valid:
        pid = period_id_for(parsed.year, parsed.month, base_year)
        if pid not in labels:
            labels[pid] = period_label(pid, base_year, label_format)
        events.append(NormalizedEvent(entity=entity,
                                      timestamp=parsed,
                                      period_id=pid,
                                      period_label=labels[pid],
                                      sequence=index))

    logger.info("Normalized %d events across %d periods (base year %d)", len(events), len(labels), base_year)
    return NormalizationResult(events=events, base_year=base_year, issues=issues)
