import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Iterable, List, Union

import pandas as pd

from .ranker import RankedRow, iter_ranked_rows

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ['entity', 'period_id', 'period_label', 'rank', 'ordering', 'filled_count']


def export_series(rows: Union[pd.DataFrame, Iterable[RankedRow]]) -> List[RankedRow]:
    """Order ranked rows by period, then rank, without touching their values."""
    if isinstance(rows, pd.DataFrame):
        rows = iter_ranked_rows(rows)
    return sorted(rows, key=lambda row: (row.period_id, row.rank))


def to_frame(rows: Iterable[RankedRow]) -> pd.DataFrame:
    records = [asdict(row) for row in export_series(rows)]
    frame = pd.DataFrame.from_records(records, columns=EXPORT_COLUMNS)
    return frame.astype({
        'period_id': 'int64',
        'rank': 'int64',
        'ordering': 'float64',
        'filled_count': 'int64',
    })


def write_csv(rows: Iterable[RankedRow], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_frame(rows).to_csv(path, index=False, encoding='utf-8', lineterminator='\n')
    logger.info("Wrote %s", path)
    return path


def write_json(rows: Iterable[RankedRow], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = []
    for row in export_series(rows):
        data = asdict(row)
        records.append({column: data[column] for column in EXPORT_COLUMNS})
    path.write_text(json.dumps(records, indent=2, ensure_ascii=False) + "\n", encoding='utf-8')
    logger.info("Wrote %s", path)
    return path
