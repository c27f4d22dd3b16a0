"""CLI entrypoint for feeds, local reports, submission, analysis and the server."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from .analysis import analyze_reports
from .app import FieldReportingApp
from .connectors.sheets import EXTENDED_REPORT_COLUMNS, LEGACY_REPORT_COLUMNS
from .errors import AnalysisError, FeedError, FormValidationError
from .geolocation import ClientLocator, acquire_location
from .map_view import write_map_file
from .server import serve
from .settings import is_extended_schema_enabled, load_app_config, load_environment
from .submission import ReportForm


def _print(payload: dict | list) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _build_app() -> FieldReportingApp:
    load_environment()
    return FieldReportingApp.from_config(load_app_config())


def cmd_serve(args: argparse.Namespace) -> int:
    return serve(_build_app(), host=args.host, port=args.port)


def cmd_fetch_reports(args: argparse.Namespace) -> int:
    app = _build_app()
    columns = EXTENDED_REPORT_COLUMNS if is_extended_schema_enabled() else LEGACY_REPORT_COLUMNS
    try:
        reports = app.connector.fetch_table(
            app.config.reports_url,
            namespace=args.namespace,
            reverse=not args.no_reverse,
            columns=columns,
        )
    except FeedError as exc:
        print(f"Report feed unavailable: {exc}")
        return 1
    _print([r.model_dump(mode="json") for r in reports])
    return 0


def cmd_provinces(_: argparse.Namespace) -> int:
    app = _build_app()
    try:
        _print(app.provinces())
    except FeedError as exc:
        print(f"Province feed unavailable: {exc}")
        return 1
    return 0


def cmd_hierarchy(args: argparse.Namespace) -> int:
    app = _build_app()
    try:
        index = app.hierarchy()
    except FeedError as exc:
        print(f"Hierarchy feed unavailable: {exc}")
        return 1
    if args.level == "regions":
        options = index.regions(args.q)
    elif args.level == "provinces":
        options = index.provinces(args.region, args.q)
    elif args.level == "communes":
        options = index.communes(args.region, args.province, args.q)
    else:
        options = index.villages(args.region, args.province, args.commune, args.q)
    _print({"level": args.level, "options": options})
    return 0


def cmd_list_local(_: argparse.Namespace) -> int:
    app = _build_app()
    _print([r.model_dump(mode="json") for r in app.store.all()])
    return 0


def cmd_submit(args: argparse.Namespace) -> int:
    app = _build_app()
    try:
        form = ReportForm.from_dict(vars(args))
        form.validate()
    except FormValidationError as exc:
        print(f"Report not submitted: {exc}")
        return 2
    location = acquire_location(
        ClientLocator(args.latitude, args.longitude),
        timeout_seconds=app.config.geolocation_timeout_seconds,
    )
    result = app.pipeline.submit(form, location)
    _print(result.to_dict())
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    app = _build_app()
    remaining = app.store.remove(args.id)
    _print({"status": "ok", "count": len(remaining)})
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    app = _build_app()
    reports = app.store.all() if args.source == "local" else app.dashboard_feed.refresh()
    try:
        result = analyze_reports(reports)
    except AnalysisError as exc:
        print(f"Analysis unavailable, retry later: {exc}")
        return 1
    _print(result.model_dump())
    return 0


def cmd_render_map(args: argparse.Namespace) -> int:
    app = _build_app()
    reports = app.map_feed.refresh()
    if app.map_feed.notice:
        print(app.map_feed.notice)
    path = write_map_file(
        reports,
        Path(args.output),
        center=app.config.map_center,
        zoom=app.config.map_zoom,
    )
    _print({"output": str(path), "markers": sum(1 for r in reports if r.has_coordinates)})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Douar damage field reporting")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the local HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8788)
    serve_parser.set_defaults(func=cmd_serve)

    fetch_parser = subparsers.add_parser("fetch-reports", help="Fetch and normalize the central report sheet")
    fetch_parser.add_argument("--namespace", default="remote", help="Prefix for synthesized report ids")
    fetch_parser.add_argument("--no-reverse", action="store_true", help="Keep spreadsheet append order")
    fetch_parser.set_defaults(func=cmd_fetch_reports)

    provinces_parser = subparsers.add_parser("provinces", help="List provinces from the reference sheet")
    provinces_parser.set_defaults(func=cmd_provinces)

    hierarchy_parser = subparsers.add_parser("hierarchy", help="Query the region/province/commune/douar index")
    hierarchy_parser.add_argument("level", choices=["regions", "provinces", "communes", "villages"])
    hierarchy_parser.add_argument("--region", default="")
    hierarchy_parser.add_argument("--province", default="")
    hierarchy_parser.add_argument("--commune", default="")
    hierarchy_parser.add_argument("--q", default="", help="Substring typed so far")
    hierarchy_parser.set_defaults(func=cmd_hierarchy)

    list_parser = subparsers.add_parser("list-local", help="Show reports saved on this device")
    list_parser.set_defaults(func=cmd_list_local)

    submit_parser = subparsers.add_parser("submit", help="Submit a field report")
    submit_parser.add_argument("--village-name", dest="village_name", default="")
    submit_parser.add_argument("--region", default="")
    submit_parser.add_argument("--province", default="")
    submit_parser.add_argument("--commune", default="")
    submit_parser.add_argument("--damage-type", dest="damage_type", default="")
    submit_parser.add_argument("--damage-level", dest="damage_level", default="MEDIUM")
    submit_parser.add_argument("--needs", default="")
    submit_parser.add_argument("--contact-number", dest="contact_number", default="")
    submit_parser.add_argument("--latitude", type=float)
    submit_parser.add_argument("--longitude", type=float)
    submit_parser.set_defaults(func=cmd_submit)

    delete_parser = subparsers.add_parser("delete", help="Delete a locally saved report")
    delete_parser.add_argument("id")
    delete_parser.set_defaults(func=cmd_delete)

    analyze_parser = subparsers.add_parser("analyze", help="AI summary of the reports")
    analyze_parser.add_argument("--source", choices=["local", "remote"], default="local")
    analyze_parser.set_defaults(func=cmd_analyze)

    map_parser = subparsers.add_parser("render-map", help="Write the map overview to an HTML file")
    map_parser.add_argument("--output", default="reports_map.html")
    map_parser.set_defaults(func=cmd_render_map)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    try:
        return args.func(args)
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
