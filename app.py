import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from scrobble_race import PIPELINE_DEFAULTS, PipelineConfig, ScrobbleRaceError, run_pipeline
from scrobble_race.exporter import to_frame, write_csv, write_json
from scrobble_race.loaders import load_events
from scrobble_race.render import build_race_figure, write_race_html
from scrobble_race.viewer import create_viewer_app, serve


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Listening history bar race")
    parser.add_argument("--data", type=str, required=True,
                        help="Spotify Extended Streaming History directory or scrobble CSV file")
    parser.add_argument("--out", type=str, default="race.csv",
                        help="CSV file for the ranked series")
    parser.add_argument("--json", type=str, default=None,
                        help="Also write the ranked series as JSON")
    parser.add_argument("--html", type=str, default=None,
                        help="Write the animated bar race to this HTML file")
    parser.add_argument("--top-n", type=int, default=PIPELINE_DEFAULTS['TOP_N'],
                        help="Number of artists ranked per month")
    parser.add_argument("--grid-limit", type=int, default=PIPELINE_DEFAULTS['GRID_SAFETY_LIMIT'],
                        help="Maximum artist x month cells")
    parser.add_argument("--min-plays", type=int, default=PIPELINE_DEFAULTS['MIN_TOTAL_PLAYS'],
                        help="Ignore artists with fewer lifetime plays")
    parser.add_argument("--boundary-ties", choices=["strict", "include"], default=PIPELINE_DEFAULTS['BOUNDARY_TIES'],
                        help="Keep artists tied with the last ranked one")
    parser.add_argument("--strict", action="store_true",
                        help="Fail when the history has no valid plays")
    parser.add_argument("--base-year", type=int, default=None,
                        help="Year of period 1 (defaults to the earliest play)")
    parser.add_argument("--label-format", type=str, default=PIPELINE_DEFAULTS['PERIOD_LABEL_FORMAT'],
                        help="strftime format for month labels")
    parser.add_argument("--steps", type=int, default=1,
                        help="Animation frames per month")
    parser.add_argument("--artist-column", type=str, default=None,
                        help="Artist column of a scrobble CSV")
    parser.add_argument("--timestamp-column", type=str, default=None,
                        help="Timestamp column of a scrobble CSV")
    parser.add_argument("--no-header", action="store_true",
                        help="Scrobble CSV has no header row (artist, album, track, date)")
    parser.add_argument("--serve", action="store_true",
                        help="Preview the race in a local dashboard")
    parser.add_argument("--port", type=int, default=8050,
                        help="Port to run the dashboard on")
    parser.add_argument("--host", type=str, default="127.0.0.1",
                        help="Host to run the dashboard on")
    parser.add_argument("--debug", action="store_true",
                        help="Run the dashboard in debug mode")
    parser.add_argument("--no-browser", action="store_true",
                        help="Do not open a browser when serving")
    parser.add_argument("--verbose", action="store_true",
                        help="Debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    print("Loading listening history...")
    try:
        if args.steps < 1:
            raise ValueError(f"--steps must be at least 1, got {args.steps}")
        config = PipelineConfig(top_n=args.top_n,
                                base_year=args.base_year,
                                grid_safety_limit=args.grid_limit,
                                min_total_plays=args.min_plays,
                                boundary_ties=args.boundary_ties,
                                strict=args.strict,
                                period_label_format=args.label_format)
        csv_options = {}
        if Path(args.data).is_file():
            csv_options = {"artist_column": args.artist_column,
                           "timestamp_column": args.timestamp_column,
                           "has_header": not args.no_header}
        raw_events = load_events(args.data, **csv_options)
        print(f"{len(raw_events)} plays loaded")

        result = run_pipeline(raw_events, config, progress=True)
    except (ScrobbleRaceError, ValueError, FileNotFoundError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    if result.issues:
        print(f"⚠️ {result.issues.describe()}", file=sys.stderr)
    if result.empty_error is not None:
        print(f"⚠️ {result.empty_error}; writing empty output", file=sys.stderr)
    else:
        labels = result.period_labels
        print(f"✅ {result.entity_count} artists across {result.period_count} months "
              f"({labels[0]} to {labels[-1]}), {len(result.rows)} ranked rows")

    write_csv(result.rows, args.out)
    print(f"✅ Ranked series written to {args.out}")
    if args.json:
        write_json(result.rows, args.json)
        print(f"✅ JSON written to {args.json}")

    if args.html or args.serve:
        figure = build_race_figure(to_frame(result.rows), top_n=args.top_n, steps_per_period=args.steps)
        if args.html:
            write_race_html(figure, args.html)
            print(f"✅ Bar race written to {args.html}")
        if args.serve:
            print(f"🚀 Starting viewer at http://{args.host}:{args.port}")
            serve(create_viewer_app(result, figure), host=args.host, port=args.port,
                  debug=args.debug, open_browser=not args.no_browser)
    return 0


if __name__ == "__main__":
    sys.exit(main())
