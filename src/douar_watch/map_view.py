"""Folium map overview of reports that carry coordinates."""

from __future__ import annotations

import html
from pathlib import Path
from typing import Iterable, Sequence

import folium

from .config import FALLBACK_MAP_CENTER, FALLBACK_MAP_ZOOM
from .feature_flags import get_feature_flag
from .models import DamageLevel, Report
from .severity import level_label

TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors"


def mappable(reports: Iterable[Report]) -> list[Report]:
    return [r for r in reports if r.has_coordinates]


def popup_html(report: Report) -> str:
    esc = html.escape
    color = "red" if report.damage_level is DamageLevel.CRITICAL else "inherit"
    return (
        "<div style=\"font-family: 'Tajawal', sans-serif;\" dir=\"rtl\">"
        f"<h3 style=\"margin: 0 0 8px 0; color: #e11d48;\">{esc(report.village_name)}</h3>"
        f"<p><strong>الإقليم:</strong> {esc(report.province)}</p>"
        f"<p><strong>الضرر:</strong> {esc(report.damage_type)}</p>"
        f"<p><strong>الاستعجال:</strong> <span style=\"color: {color}\">{esc(level_label(report.damage_level))}</span></p>"
        f"<p><strong>الاحتياجات:</strong> {esc(report.needs)}</p>"
        f"<p><a href=\"tel:{esc(report.contact_number, quote=True)}\">اتصال: {esc(report.contact_number)}</a></p>"
        "</div>"
    )


def build_map(
    reports: Sequence[Report],
    *,
    center: tuple[float, float] = FALLBACK_MAP_CENTER,
    zoom: int = FALLBACK_MAP_ZOOM,
) -> folium.Map:
    m = folium.Map(location=list(center), zoom_start=zoom, tiles=None)
    folium.TileLayer(
        tiles="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        attr=TILE_ATTRIBUTION,
        name="OpenStreetMap",
    ).add_to(m)

    bounds: list[list[float]] = []
    for report in mappable(reports):
        point = [float(report.latitude), float(report.longitude)]
        bounds.append(point)
        folium.Marker(
            location=point,
            popup=folium.Popup(popup_html(report), max_width=300),
            tooltip=report.village_name,
        ).add_to(m)

    if bounds and bool(get_feature_flag("map_fit_bounds_enabled", True)):
        padding = int(get_feature_flag("map_fit_padding_px", 50))
        m.fit_bounds(bounds, padding=(padding, padding))
    return m


def render_map_html(reports: Sequence[Report], **kwargs) -> str:
    return build_map(reports, **kwargs).get_root().render()


def write_map_file(reports: Sequence[Report], output: Path, **kwargs) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    build_map(reports, **kwargs).save(str(output))
    return output
