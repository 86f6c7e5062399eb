"""Local Dash page for previewing a rendered bar race."""
import logging
import webbrowser
from threading import Timer
from typing import List

import dash
import dash_bootstrap_components as dbc
import plotly.graph_objects as go
from dash import dcc, html

from .pipeline import PipelineResult
from .ranker import RankedRow
from .render import RENDER_CONSTANTS

logger = logging.getLogger(__name__)


def _stat_card(value: str, caption: str, width: int = 3) -> dbc.Col:
    return dbc.Col([
        dbc.Card([
            dbc.CardBody([
                html.H4(value, className="text-primary"),
                html.P(caption, className="text-light")
            ])
        ], className="custom-card text-center")
    ], width=width)


def final_standings(result: PipelineResult) -> List[RankedRow]:
    """Ranked rows of the last period."""
    if not result.rows:
        return []
    last_period = result.rows[-1].period_id
    return [row for row in result.rows if row.period_id == last_period]


def standings_table(rows: List[RankedRow]) -> dbc.Table:
    return dbc.Table([
        html.Thead([
            html.Tr([
                html.Th("Rank", style={"width": "10%"}),
                html.Th("Artist", style={"width": "60%"}),
                html.Th("Plays", style={"width": "30%"})
            ])
        ]),
        html.Tbody([
            html.Tr([
                html.Td(row.rank, className="text-center"),
                html.Td(row.entity),
                html.Td(f"{row.filled_count:,}", className="text-end")
            ]) for row in rows
        ])
    ],
    striped=True,
    bordered=True,
    hover=True,
    responsive=True,
    className="mt-3",
    style={"backgroundColor": "#1a252f"})


def create_viewer_app(result: PipelineResult, figure: go.Figure) -> dash.Dash:
    app = dash.Dash(__name__, external_stylesheets=[dbc.themes.CYBORG])
    app.title = "Listening Race"

    labels = result.period_labels
    span = f"{labels[0]} to {labels[-1]}" if labels else "N/A"

    children = [
        html.H2("🎵 Listening Race", className="mb-4"),
        dbc.Row([
            _stat_card(f"{result.event_count:,}", "Plays Counted", width=2),
            _stat_card(f"{result.entity_count:,}", "Unique Artists", width=2),
            _stat_card(f"{result.period_count:,}", "Months", width=2),
            _stat_card(f"{result.issues.count:,}", "Skipped Events", width=2),
            _stat_card(span, "Date Range", width=4),
        ], className="mb-4"),
    ]
    if result.issues:
        children.append(dbc.Alert(f"{result.issues.count:,} malformed events were skipped.", color="warning"))
    if result.empty_error is not None:
        children.append(dbc.Alert(str(result.empty_error), color="danger"))

    children.append(dcc.Graph(id="race-graph", figure=figure))

    standings = final_standings(result)
    if standings:
        children.append(dbc.Card([
            dbc.CardBody([
                html.H5(f"📊 Standings - {standings[0].period_label}", className="mb-3"),
                standings_table(standings)
            ])
        ], className="mt-4"))

    app.layout = html.Div(children, style={
        "padding": "20px 40px",
        "backgroundColor": RENDER_CONSTANTS['BACKGROUND'],
        "minHeight": "100vh",
        "fontFamily": "Verdana, sans-serif"
    })
    return app


def serve(app: dash.Dash, host: str = "127.0.0.1", port: int = 8050,
          debug: bool = False, open_browser: bool = True) -> None:
    # Open browser automatically after a short delay
    if open_browser:
        Timer(1.5, lambda: webbrowser.open(f"http://{host}:{port}")).start()
    logger.info("Serving viewer at http://%s:%d", host, port)
    app.run(debug=debug, host=host, port=port)
