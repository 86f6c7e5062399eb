"""Plotly rendering of the ranked series as an animated bar race."""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import plotly.io as pio

from .config import PIPELINE_DEFAULTS

logger = logging.getLogger(__name__)

# Set default plotly theme to dark
pio.templates.default = "plotly_dark"

RENDER_CONSTANTS = {
    'BACKGROUND': '#0e1117',
    'FRAME_DURATION_MS': 600,
    'RANGE_PADDING': 1.1,
    'MIN_HEIGHT': 600,
    'ROW_HEIGHT': 32,
}

ENTITY_PALETTE = [
    '#FF1493', '#FF69B4', '#DA70D6', '#BA55D3', '#9370DB',
    '#4169E1', '#1E90FF', '#00CED1', '#20B2AA', '#008B8B',
    '#FFD700', '#FFA500', '#FF8C00', '#FFFF00', '#FF4500',
    '#CD853F', '#D2691E', '#A0522D', '#8B4513', '#DEB887',
    '#32CD32', '#228B22', '#6B8E23', '#9ACD32', '#ADFF2F'
]

FRAME_COLUMNS = ['frame', 'period_id', 'period_label', 'entity', 'ordering', 'filled_count']

# Below the visible y range
HIDDEN_ORDERING = -1.0


def assign_entity_colors(entities: Iterable[str], overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Assign a fixed color to every entity so a bar keeps its color across frames.

    Colors come from the palette in sorted-name order, so the same set of
    entities always gets the same colors. overrides pins specific entities.
    """
    color_mapping = dict(overrides or {})
    remaining = sorted(set(entities) - set(color_mapping))
    for i, entity in enumerate(remaining):
        color_mapping[entity] = ENTITY_PALETTE[i % len(ENTITY_PALETTE)]
    return color_mapping


def interpolate_frames(frame: pd.DataFrame, steps_per_period: int = 1) -> pd.DataFrame:
    """
    Expand one frame per period into steps_per_period frames per transition.

    Between two consecutive periods, entities ranked in both get linearly
    interpolated ordering and filled_count; the in-between frames keep the
    earlier period's label. Entities entering or leaving the top N only show
    up in their own periods' frames.
    """
    if steps_per_period < 1:
        raise ValueError(f"steps_per_period must be at least 1, got {steps_per_period}")

    columns = ['period_id', 'period_label', 'entity', 'ordering', 'filled_count']
    if frame.empty:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    by_period = [group[columns] for _, group in frame.sort_values(['period_id', 'ordering'],
                                                                  ascending=[True, False]).groupby('period_id', sort=True)]
    pieces: List[pd.DataFrame] = []
    frame_index = 0
    for i, current in enumerate(by_period):
        start = current.assign(frame=frame_index, filled_count=current['filled_count'].astype('float64'))
        pieces.append(start)
        frame_index += 1
        if i + 1 == len(by_period) or steps_per_period == 1:
            continue

        following = by_period[i + 1]
        shared = current.merge(following[['entity', 'ordering', 'filled_count']],
                               on='entity', suffixes=('', '_next'))
        for step in range(1, steps_per_period):
            t = step / steps_per_period
            between = shared[['period_id', 'period_label', 'entity']].copy()
            between['ordering'] = shared['ordering'] + (shared['ordering_next'] - shared['ordering']) * t
            between['filled_count'] = shared['filled_count'] + (shared['filled_count_next'] - shared['filled_count']) * t
            between['frame'] = frame_index
            pieces.append(between)
            frame_index += 1

    return pd.concat(pieces, ignore_index=True)[FRAME_COLUMNS]


def pad_frames(frames: pd.DataFrame) -> pd.DataFrame:
    """
    Give every frame a row for every entity that appears anywhere in the race.

    Absent entities get a zero count at HIDDEN_ORDERING, below the visible
    axis range. plotly express builds its traces from the first frame only,
    so without this an entity entering later would never be drawn.
    """
    if frames.empty:
        return frames

    entities = frames['entity'].unique()
    periods = frames.drop_duplicates('frame').set_index('frame')[['period_id', 'period_label']]
    everything = pd.MultiIndex.from_product([periods.index, entities], names=['frame', 'entity'])
    missing = everything.difference(frames.set_index(['frame', 'entity']).index)
    if missing.empty:
        return frames

    filler = missing.to_frame(index=False).join(periods, on='frame')
    filler['ordering'] = HIDDEN_ORDERING
    filler['filled_count'] = 0.0
    padded = pd.concat([frames, filler[FRAME_COLUMNS]], ignore_index=True)
    return padded.sort_values('frame', kind='stable').reset_index(drop=True)


def build_race_figure(frame: pd.DataFrame,
                      top_n: int = PIPELINE_DEFAULTS['TOP_N'],
                      steps_per_period: int = 1,
                      title: str = "Top Artists by Cumulative Plays",
                      colors: Optional[Dict[str, str]] = None,
                      frame_duration_ms: int = RENDER_CONSTANTS['FRAME_DURATION_MS']) -> go.Figure:
    """Build an animated horizontal bar race from exported rows."""
    if frame.empty:
        return go.Figure().update_layout(
            title="No data to display for the selected parameters.",
            template='plotly_dark',
            plot_bgcolor=RENDER_CONSTANTS['BACKGROUND'],
            paper_bgcolor=RENDER_CONSTANTS['BACKGROUND'],
        )

    frames = pad_frames(interpolate_frames(frame, steps_per_period))
    colors = colors or assign_entity_colors(frames['entity'].unique())
    max_count = frames['filled_count'].max()

    fig = px.bar(
        frames,
        x='filled_count',
        y='ordering',
        color='entity',
        orientation='h',
        text='entity',
        animation_frame='frame',
        animation_group='entity',
        color_discrete_map=colors,
        hover_data=['period_label'],
        range_x=[0, max_count * RENDER_CONSTANTS['RANGE_PADDING']],
        range_y=[0.5, top_n + 0.5],
    )

    # Show the period label on the slider instead of the frame number
    labels = frames.drop_duplicates('frame').set_index('frame')['period_label']
    if fig.layout.sliders:
        for step in fig.layout.sliders[0].steps:
            step.label = labels.get(int(step.label), step.label)
        fig.layout.sliders[0].currentvalue.prefix = ""
    if fig.layout.updatemenus:
        duration = max(1, frame_duration_ms // steps_per_period)
        play_button = fig.layout.updatemenus[0].buttons[0]
        play_args = dict(play_button.args[1])
        play_args['frame'] = {**play_args.get('frame', {}), 'duration': duration}
        play_args['transition'] = {**play_args.get('transition', {}), 'duration': duration}
        play_button.args = [play_button.args[0], play_args]

    fig.update_traces(textposition='inside', insidetextanchor='end', showlegend=False)
    fig.update_layout(
        title={
            'text': title,
            'x': 0.5,
            'xanchor': 'center',
            'font': {'size': 20}
        },
        xaxis_title="Cumulative Plays",
        yaxis_title=None,
        yaxis=dict(showticklabels=False),
        height=max(RENDER_CONSTANTS['MIN_HEIGHT'], top_n * RENDER_CONSTANTS['ROW_HEIGHT'] + 150),
        template='plotly_dark',
        plot_bgcolor=RENDER_CONSTANTS['BACKGROUND'],
        paper_bgcolor=RENDER_CONSTANTS['BACKGROUND'],
    )
    logger.info("Built race figure with %d frames", frames['frame'].nunique())
    return fig


def write_race_html(fig: go.Figure, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(path, include_plotlyjs='cdn', auto_play=False)
    logger.info("Wrote %s", path)
    return path
