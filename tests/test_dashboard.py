import httpx

from douar_watch.dashboard import FEED_FAILURE_NOTICE, ReportFeedView, level_badge, level_counts
from douar_watch.models import DamageLevel, Report
from douar_watch.store import ReportStore

ROWS = [
    ["2024-01-01", "Tizi", "Al Haouz", "Asni", "Collapse", "4", "Tents", "0600", None, 31.1, -7.9, "Marrakech-Safi"],
    ["2024-01-02", "Imi", "Taroudant", "Ijoukak", "Cracks", "1", "Water", "0601", None, None, None, None],
]


def test_remote_reports_newest_first(sheet_connector) -> None:
    feed = ReportFeedView(connector=sheet_connector({"reports": ROWS}), url="https://sheets.test/reports")
    reports = feed.refresh()
    assert [r.village_name for r in reports] == ["Imi", "Tizi"]
    assert [r.id for r in reports] == ["remote-1", "remote-0"]
    assert feed.notice is None


def test_feed_failure_falls_back_to_local(sheet_connector, tmp_path) -> None:
    store = ReportStore.at_path(tmp_path / "s.json")
    store.add(Report(id="local-1", village_name="Local", province="P", commune="C"))
    feed = ReportFeedView(
        connector=sheet_connector({"reports": httpx.ConnectError("offline")}),
        url="https://sheets.test/reports",
        fallback=store.all,
    )
    reports = feed.refresh()
    assert [r.id for r in reports] == ["local-1"]
    assert feed.notice == FEED_FAILURE_NOTICE


def test_failure_without_fallback_keeps_previous_list(sheet_connector) -> None:
    tables = {"reports": ROWS}
    feed = ReportFeedView(connector=sheet_connector(tables), url="https://sheets.test/reports")
    feed.refresh()
    tables["reports"] = 500
    assert len(feed.refresh()) == 2
    assert feed.notice == FEED_FAILURE_NOTICE


def test_refresh_in_flight_is_not_duplicated(sheet_connector) -> None:
    connector = sheet_connector({"reports": ROWS})
    feed = ReportFeedView(connector=connector, url="https://sheets.test/reports")
    feed._lock.acquire()
    try:
        assert feed.is_loading
        assert feed.refresh() == []
    finally:
        feed._lock.release()
    assert connector.requests == []
    assert not feed.is_loading


def test_legacy_schema_ignores_region_column(sheet_connector, monkeypatch) -> None:
    monkeypatch.setenv("DW_FLAG_EXTENDED_SCHEMA_ENABLED", "false")
    feed = ReportFeedView(connector=sheet_connector({"reports": ROWS}), url="https://sheets.test/reports")
    assert all(r.region is None for r in feed.refresh())


def test_to_dict_decorates_reports(sheet_connector) -> None:
    feed = ReportFeedView(connector=sheet_connector({"reports": ROWS}), url="https://sheets.test/reports")
    feed.refresh()
    payload = feed.to_dict()
    assert payload["counts"] == {"LOW": 1, "MEDIUM": 0, "HIGH": 0, "CRITICAL": 1}
    first = payload["reports"][1]
    assert first["damage_label"] == "4 - حرج جداً"
    assert first["badge"] == "badge-critical"
    assert first["date"] == "2024-01-01"
    assert payload["is_loading"] is False


def test_badges_and_counts() -> None:
    assert level_badge(DamageLevel.LOW) == "badge-low"
    assert level_counts([]) == {"LOW": 0, "MEDIUM": 0, "HIGH": 0, "CRITICAL": 0}
