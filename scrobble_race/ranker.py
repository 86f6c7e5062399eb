import logging
from dataclasses import dataclass
from typing import Iterator

import pandas as pd

from .config import PIPELINE_DEFAULTS

logger = logging.getLogger(__name__)

RANKED_COLUMNS = ['entity', 'period_id', 'period_label', 'filled_count', 'rank', 'ordering']


@dataclass(frozen=True)
class RankedRow:
    entity: str
    period_id: int
    period_label: str
    filled_count: int
    rank: int
    ordering: float


def rank_periods(grid: pd.DataFrame,
                 top_n: int = PIPELINE_DEFAULTS['TOP_N'],
                 boundary_ties: str = PIPELINE_DEFAULTS['BOUNDARY_TIES']) -> pd.DataFrame:
    """
    Rank entities within each period by filled count and keep the top N.

    Ranks are strict ordinals: equal counts are ordered by entity name ascending.
    ordering = top_n + 1 - rank, so rank 1 always sits at the same end of the
    axis. Entities that have not played yet (count 0) are never ranked. With
    boundary_ties='include', rows past the cutoff that tie the N-th row's count
    are kept as well.
    """
    active = grid.loc[grid['filled_count'] > 0]
    ordered = active.sort_values(['period_id', 'filled_count', 'entity'],
                                 ascending=[True, False, True]).reset_index(drop=True)
    ordered['rank'] = ordered.groupby('period_id').cumcount().astype('int64') + 1

    keep = ordered['rank'] <= top_n
    if boundary_ties == 'include':
        cutoff = ordered.loc[ordered['rank'] == top_n].set_index('period_id')['filled_count']
        keep = keep | (ordered['filled_count'] == ordered['period_id'].map(cutoff))

    ranked = ordered.loc[keep].copy()
    ranked['ordering'] = (top_n + 1 - ranked['rank']).astype('float64')
    ranked = ranked[RANKED_COLUMNS].reset_index(drop=True)
    logger.info("Ranked %d rows across %d periods (top %d)",
                len(ranked), ranked['period_id'].nunique(), top_n)
    return ranked


def iter_ranked_rows(ranked: pd.DataFrame) -> Iterator[RankedRow]:
    for record in ranked[RANKED_COLUMNS].itertuples(index=False):
        yield RankedRow(entity=record.entity,
                        period_id=int(record.period_id),
                        period_label=record.period_label,
                        filled_count=int(record.filled_count),
                        rank=int(record.rank),
                        ordering=float(record.ordering))
