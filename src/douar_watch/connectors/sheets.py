"""Spreadsheet (gviz JSON export) connector for reports and reference data.

The export endpoint wraps its JSON payload in a fixed JavaScript envelope::

    /*O_o*/
    google.visualization.Query.setResponse({...});

The payload is recovered positionally by dropping ``prefix_chars`` leading and
``suffix_chars`` trailing characters. If the upstream envelope changes, the
JSON decode fails and a :class:`FeedError` is raised.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List

import httpx
from pydantic import ValidationError

from ..config import GVIZ_PREFIX_CHARS, GVIZ_SUFFIX_CHARS
from ..errors import FeedError
from ..models import HierarchyRow, Report
from ..severity import map_severity

logger = logging.getLogger(__name__)

UNNAMED_VILLAGE = "بدون اسم"
MISSING_TEXT = "-"

_GVIZ_DATE_RE = re.compile(r"^Date\((\d+),(\d+),(\d+)(?:,(\d+))?(?:,(\d+))?(?:,(\d+))?\)$")


@dataclass(frozen=True)
class ReportColumns:
    """Positional column layout of the reports sheet. ``None`` = column absent."""

    timestamp: int = 0
    village_name: int = 1
    province: int = 2
    commune: int = 3
    damage_type: int = 4
    damage_level: int = 5
    needs: int = 6
    contact_number: int = 7
    maps_link: int = 8
    latitude: int = 9
    longitude: int = 10
    region: int | None = 11


EXTENDED_REPORT_COLUMNS = ReportColumns()
LEGACY_REPORT_COLUMNS = ReportColumns(region=None)


@dataclass(frozen=True)
class HierarchyColumns:
    region: int = 0
    province: int = 1
    commune: int = 2
    village: int = 3


HIERARCHY_COLUMNS = HierarchyColumns()


def strip_envelope(text: str, prefix_chars: int = GVIZ_PREFIX_CHARS, suffix_chars: int = GVIZ_SUFFIX_CHARS) -> str:
    end = len(text) - suffix_chars if suffix_chars else len(text)
    return text[prefix_chars:end]


def parse_table(
    text: str,
    *,
    prefix_chars: int = GVIZ_PREFIX_CHARS,
    suffix_chars: int = GVIZ_SUFFIX_CHARS,
    url: str = "",
) -> list[list[Any]]:
    """Decode an enveloped gviz response into rows of raw cell values.

    Absent cells (``null`` or a cell without ``v``) become ``None``.
    """
    try:
        payload = json.loads(strip_envelope(text, prefix_chars, suffix_chars))
    except json.JSONDecodeError as exc:
        raise FeedError(f"Feed payload is not valid JSON after envelope strip: {exc}", url=url) from exc

    try:
        rows = payload["table"]["rows"]
    except (KeyError, TypeError) as exc:
        raise FeedError("Feed payload has no table.rows", url=url) from exc
    if not isinstance(rows, list):
        raise FeedError("Feed table.rows is not a list", url=url)

    out: list[list[Any]] = []
    for row in rows:
        cells = (row or {}).get("c") if isinstance(row, dict) else None
        values: list[Any] = []
        for cell in cells or []:
            values.append(cell.get("v") if isinstance(cell, dict) else None)
        out.append(values)
    return out


def _cell(values: list[Any], index: int | None) -> Any:
    if index is None or index >= len(values):
        return None
    return values[index]


def _is_blank(value: Any) -> bool:
    # Spreadsheet cells treat "", 0 and false the same as missing.
    return value is None or value is False or value == "" or (isinstance(value, (int, float)) and value == 0)


def _stringify(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _text(value: Any, default: str) -> str:
    return default if _is_blank(value) else _stringify(value)


def _coordinate(value: Any, limit: float) -> float | None:
    if _is_blank(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def normalize_timestamp(value: Any) -> str:
    """Return ISO-8601 for gviz ``Date(y,m,d,...)`` literals (0-based month)."""
    if _is_blank(value):
        return ""
    text = str(value).strip()
    match = _GVIZ_DATE_RE.match(text)
    if not match:
        return text
    parts = [int(p) if p is not None else 0 for p in match.groups()]
    year, month, day, hour, minute, second = parts
    try:
        return datetime(year, month + 1, day, hour, minute, second).isoformat()
    except ValueError:
        return text


def row_to_report(
    values: list[Any],
    index: int,
    namespace: str,
    columns: ReportColumns = EXTENDED_REPORT_COLUMNS,
) -> Report:
    latitude = _coordinate(_cell(values, columns.latitude), 90.0)
    longitude = _coordinate(_cell(values, columns.longitude), 180.0)
    if latitude is None or longitude is None:
        latitude = longitude = None

    region = None
    if columns.region is not None:
        region = _text(_cell(values, columns.region), MISSING_TEXT)

    return Report(
        id=f"{namespace}-{index}",
        timestamp=normalize_timestamp(_cell(values, columns.timestamp)),
        village_name=_text(_cell(values, columns.village_name), UNNAMED_VILLAGE),
        province=_text(_cell(values, columns.province), MISSING_TEXT),
        commune=_text(_cell(values, columns.commune), MISSING_TEXT),
        region=region,
        damage_type=_text(_cell(values, columns.damage_type), MISSING_TEXT),
        damage_level=map_severity(_cell(values, columns.damage_level)),
        needs=_text(_cell(values, columns.needs), MISSING_TEXT),
        contact_number=_text(_cell(values, columns.contact_number), MISSING_TEXT),
        maps_link=_text(_cell(values, columns.maps_link), ""),
        latitude=latitude,
        longitude=longitude,
    )


def rows_to_reports(
    rows: list[list[Any]],
    *,
    namespace: str,
    reverse: bool,
    columns: ReportColumns = EXTENDED_REPORT_COLUMNS,
) -> list[Report]:
    reports = [row_to_report(values, index, namespace, columns) for index, values in enumerate(rows)]
    if reverse:
        reports.reverse()
    return reports


@dataclass
class SheetFeedConnector:
    timeout_seconds: float = 20.0
    prefix_chars: int = GVIZ_PREFIX_CHARS
    suffix_chars: int = GVIZ_SUFFIX_CHARS

    def _build_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout_seconds, follow_redirects=True)

    def fetch_rows(self, url: str) -> list[list[Any]]:
        try:
            with self._build_client() as client:
                response = client.get(url)
                response.raise_for_status()
                text = response.text
        except httpx.HTTPError as exc:
            logger.warning("Feed fetch failed for %s: %s", url, exc)
            raise FeedError(f"Feed request failed: {exc}", url=url) from exc

        rows = parse_table(text, prefix_chars=self.prefix_chars, suffix_chars=self.suffix_chars, url=url)
        logger.debug("Fetched %d rows from %s", len(rows), url)
        return rows

    def fetch_table(
        self,
        url: str,
        *,
        namespace: str = "remote",
        reverse: bool = True,
        columns: ReportColumns = EXTENDED_REPORT_COLUMNS,
    ) -> List[Report]:
        """Fetch the reports sheet. ``reverse`` turns append order into newest-first."""
        rows = self.fetch_rows(url)
        try:
            return rows_to_reports(rows, namespace=namespace, reverse=reverse, columns=columns)
        except ValidationError as exc:
            raise FeedError(f"Feed row could not be mapped to a report: {exc}", url=url) from exc

    def fetch_provinces(self, url: str, column: int = 0) -> list[str]:
        rows = self.fetch_rows(url)
        names = {_stringify(v).strip() for v in (_cell(r, column) for r in rows) if not _is_blank(v)}
        return sorted(n for n in names if n)

    def fetch_hierarchy_rows(self, url: str, columns: HierarchyColumns = HIERARCHY_COLUMNS) -> list[HierarchyRow]:
        rows = self.fetch_rows(url)
        return [
            HierarchyRow(
                region=_text(_cell(values, columns.region), ""),
                province=_text(_cell(values, columns.province), ""),
                commune=_text(_cell(values, columns.commune), ""),
                village=_text(_cell(values, columns.village), ""),
            )
            for values in rows
        ]


def fetch_table(url: str, *, namespace: str = "remote", reverse: bool = True, **kwargs: Any) -> List[Report]:
    return SheetFeedConnector(**kwargs).fetch_table(url, namespace=namespace, reverse=reverse)
