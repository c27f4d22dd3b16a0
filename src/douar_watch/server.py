"""Local HTTP API for the report form, dashboard and map overview."""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

from .analysis import analyze_reports
from .app import FieldReportingApp
from .errors import AnalysisError, FeedError, FormValidationError
from .geolocation import ClientLocator, acquire_location
from .map_view import render_map_html
from .submission import ReportForm

logger = logging.getLogger(__name__)

HIERARCHY_LEVELS = {"regions", "provinces", "communes", "villages"}


def _json_body(handler: BaseHTTPRequestHandler) -> dict:
    length = int(handler.headers.get("Content-Length", "0"))
    if length <= 0:
        return {}
    raw = handler.rfile.read(length).decode("utf-8")
    if not raw.strip():
        return {}
    payload = json.loads(raw)
    return payload if isinstance(payload, dict) else {}


class FieldReportingServer(ThreadingHTTPServer):
    def __init__(self, address: tuple[str, int], app: FieldReportingApp) -> None:
        super().__init__(address, FieldReportingHandler)
        self.app = app


class FieldReportingHandler(BaseHTTPRequestHandler):
    server_version = "DouarWatch/1.0"
    server: FieldReportingServer

    @property
    def app(self) -> FieldReportingApp:
        return self.server.app

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)

    def _cors(self) -> None:
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET,POST,OPTIONS")

    def _send_json(self, payload: dict | list, status: int = 200) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self._cors()
        self.end_headers()
        self.wfile.write(body)

    def _send_html(self, markup: str) -> None:
        body = markup.encode("utf-8")
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(body)

    def do_OPTIONS(self) -> None:  # noqa: N802
        self.send_response(HTTPStatus.NO_CONTENT)
        self._cors()
        self.end_headers()

    def do_GET(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        query = {k: v[-1] for k, v in parse_qs(parsed.query).items()}
        path = parsed.path

        if path == "/api/health":
            self._send_json({"status": "ok"})
            return
        if path == "/api/reports/local":
            self._send_json({"reports": [r.model_dump(mode="json") for r in self.app.store.all()]})
            return
        if path == "/api/reports/remote":
            feed = self.app.dashboard_feed
            feed.refresh()
            self._send_json(feed.to_dict())
            return
        if path == "/api/provinces":
            try:
                self._send_json({"provinces": self.app.provinces(refresh=query.get("refresh") == "1")})
            except FeedError as exc:
                self._send_json({"provinces": [], "error": str(exc)}, status=HTTPStatus.BAD_GATEWAY)
            return
        if path.startswith("/api/hierarchy/"):
            self._hierarchy(path.rsplit("/", 1)[-1], query)
            return
        if path == "/map":
            feed = self.app.map_feed
            reports = feed.refresh()
            self._send_html(
                render_map_html(reports, center=self.app.config.map_center, zoom=self.app.config.map_zoom)
            )
            return
        self._send_json({"error": "not found"}, status=HTTPStatus.NOT_FOUND)

    def _hierarchy(self, level: str, query: dict[str, str]) -> None:
        if level not in HIERARCHY_LEVELS:
            self._send_json({"error": f"unknown level {level!r}"}, status=HTTPStatus.NOT_FOUND)
            return
        try:
            index = self.app.hierarchy()
        except FeedError as exc:
            self._send_json({"level": level, "options": [], "error": str(exc)}, status=HTTPStatus.BAD_GATEWAY)
            return
        region = query.get("region", "")
        province = query.get("province", "")
        commune = query.get("commune", "")
        text = query.get("q", "")
        if level == "regions":
            options = index.regions(text)
        elif level == "provinces":
            options = index.provinces(region, text)
        elif level == "communes":
            options = index.communes(region, province, text)
        else:
            options = index.villages(region, province, commune, text)
        self._send_json({"level": level, "options": options})

    def do_POST(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        try:
            body = _json_body(self)
        except ValueError:
            self._send_json({"error": "invalid request body"}, status=HTTPStatus.BAD_REQUEST)
            return

        if path == "/api/reports":
            self._submit(body)
            return
        if path == "/api/reports/delete":
            report_id = str(body.get("id", "")).strip()
            if not report_id:
                self._send_json({"error": "id is required"}, status=HTTPStatus.BAD_REQUEST)
                return
            remaining = self.app.store.remove(report_id)
            self._send_json({"status": "ok", "count": len(remaining)})
            return
        if path == "/api/analysis":
            source = str(body.get("source", "local"))
            reports = self.app.store.all() if source == "local" else self.app.dashboard_feed.refresh()
            try:
                result = analyze_reports(reports)
            except AnalysisError as exc:
                self._send_json(
                    {"status": "error", "error": str(exc), "retry": True},
                    status=HTTPStatus.SERVICE_UNAVAILABLE,
                )
                return
            self._send_json({"status": "ok", "analysis": result.model_dump()})
            return
        self._send_json({"error": "not found"}, status=HTTPStatus.NOT_FOUND)

    def _submit(self, body: dict) -> None:
        form = ReportForm.from_dict(body)
        try:
            form.validate()
        except FormValidationError as exc:
            self._send_json({"status": "error", "error": str(exc), "missing": exc.missing}, status=HTTPStatus.BAD_REQUEST)
            return
        location = acquire_location(
            ClientLocator(body.get("latitude"), body.get("longitude")),
            timeout_seconds=self.app.config.geolocation_timeout_seconds,
        )
        result = self.app.pipeline.submit(form, location)
        self._send_json(result.to_dict())


def serve(app: FieldReportingApp, host: str = "127.0.0.1", port: int = 8788) -> int:
    server = FieldReportingServer((host, port), app)
    print(json.dumps({"status": "listening", "host": host, "port": port}))
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0
