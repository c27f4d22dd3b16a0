import json
from typing import Callable

import httpx
import pytest

from douar_watch.connectors.sheets import SheetFeedConnector

GVIZ_PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("
GVIZ_SUFFIX = ");"


class StubSheetConnector(SheetFeedConnector):
    """Sheet connector answering from an in-memory handler."""

    def __init__(self, handler, **kwargs):
        super().__init__(**kwargs)
        self._handler = handler
        self.requests: list[httpx.Request] = []

    def _build_client(self) -> httpx.Client:
        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self._handler(request)

        return httpx.Client(transport=httpx.MockTransport(record))


def render_gviz(rows: list[list]) -> str:
    payload = {"table": {"rows": [{"c": [None if v is None else {"v": v} for v in row]} for row in rows]}}
    return GVIZ_PREFIX + json.dumps(payload, ensure_ascii=False) + GVIZ_SUFFIX


@pytest.fixture()
def sheet_connector() -> Callable[..., StubSheetConnector]:
    """Factory: rows (or an exception) per URL path, shared by every table."""

    def build(tables: dict[str, list[list] | Exception | int]) -> StubSheetConnector:
        def handler(request: httpx.Request) -> httpx.Response:
            key = request.url.path.strip("/")
            served = tables.get(key, 404)
            if isinstance(served, Exception):
                raise served
            if isinstance(served, int):
                return httpx.Response(served, text="")
            return httpx.Response(200, text=render_gviz(served))

        return StubSheetConnector(handler)

    return build


@pytest.fixture(autouse=True)
def isolated_flags(monkeypatch, tmp_path):
    """Run every test against default feature flags."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "DW_FLAG_REMOTE_SYNC_ENABLED",
        "DW_FLAG_AI_ANALYSIS_ENABLED",
        "DW_FLAG_EXTENDED_SCHEMA_ENABLED",
        "DW_FLAG_MAP_FIT_BOUNDS_ENABLED",
        "DW_FLAG_MAP_FIT_PADDING_PX",
    ):
        monkeypatch.delenv(name, raising=False)
