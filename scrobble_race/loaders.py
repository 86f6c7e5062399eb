"""Read local listening-history exports into raw play events."""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .events import RawEvent

logger = logging.getLogger(__name__)

ARTIST_COLUMNS = ['artist', 'artist_name', 'Artist', 'master_metadata_album_artist_name']
TIMESTAMP_COLUMNS = ['uts', 'utc_time', 'date', 'timestamp', 'played_at', 'ts']
HEADERLESS_SCROBBLE_COLUMNS = ['artist', 'album', 'track', 'date']


def entry_to_event(entry: Dict) -> Optional[RawEvent]:
    """Map one streaming-history entry to a play event; None for non-music entries."""
    if entry.get("spotify_track_uri") is None:
        return None
    if entry.get("offline") and entry.get("offline_timestamp"):
        timestamp = entry["offline_timestamp"]
    else:
        timestamp = entry.get("ts")
    return RawEvent(entity_name=entry.get("master_metadata_album_artist_name"), timestamp=timestamp)


def load_spotify_history(json_dir: Union[str, Path]) -> List[RawEvent]:
    """
    Read every audio streaming-history file (``*Audio*.json``) in a directory.

    Video and podcast entries are left out; files that are not a JSON list are
    skipped with a warning.
    """
    events: List[RawEvent] = []
    entry_count = 0
    for history_file in sorted(Path(json_dir).glob("*Audio*.json")):
        try:
            entries = json.loads(history_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Skipping %s: JSON error %s", history_file, e)
            continue
        if not isinstance(entries, list):
            logger.warning("Skipping %s: expected a list of entries", history_file)
            continue
        entry_count += len(entries)
        events.extend(event for event in map(entry_to_event, entries) if event is not None)

    logger.info("%d entries loaded, %d music plays", entry_count, len(events))
    return events


def _pick_column(columns: Sequence[str], candidates: Sequence[str], what: str) -> str:
    for candidate in candidates:
        if candidate in columns:
            return candidate
    raise ValueError(f"No {what} column found. Available columns: {list(columns)}")


def load_scrobble_csv(path: Union[str, Path],
                      artist_column: Optional[str] = None,
                      timestamp_column: Optional[str] = None,
                      has_header: bool = True) -> List[RawEvent]:
    """
    Load a scrobble CSV export.

    Without a header the columns are taken to be artist, album, track, date.
    Column names are auto-detected when not given; values are passed on as
    text and parsed by the normalizer.
    """
    path = Path(path)
    if has_header:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    else:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, header=None,
                         names=HEADERLESS_SCROBBLE_COLUMNS)

    artist_column = artist_column or _pick_column(df.columns, ARTIST_COLUMNS, "artist")
    timestamp_column = timestamp_column or _pick_column(df.columns, TIMESTAMP_COLUMNS, "timestamp")

    events = [RawEvent(entity_name=artist, timestamp=ts)
              for artist, ts in zip(df[artist_column].tolist(), df[timestamp_column].tolist())]
    logger.info("%d scrobbles loaded from %s", len(events), path)
    return events


def load_events(path: Union[str, Path], **csv_options) -> List[RawEvent]:
    """Load a Spotify history directory or a scrobble CSV file."""
    path = Path(path)
    if path.is_dir():
        return load_spotify_history(path)
    if path.is_file():
        return load_scrobble_csv(path, **csv_options)
    raise FileNotFoundError(f"No listening history at {path}")
