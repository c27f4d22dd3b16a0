from .sheets import (
    EXTENDED_REPORT_COLUMNS,
    HIERARCHY_COLUMNS,
    LEGACY_REPORT_COLUMNS,
    HierarchyColumns,
    ReportColumns,
    SheetFeedConnector,
    fetch_table,
    parse_table,
    strip_envelope,
)
from .webhook import WebhookSync

__all__ = [
    "SheetFeedConnector",
    "ReportColumns",
    "HierarchyColumns",
    "EXTENDED_REPORT_COLUMNS",
    "LEGACY_REPORT_COLUMNS",
    "HIERARCHY_COLUMNS",
    "WebhookSync",
    "fetch_table",
    "parse_table",
    "strip_envelope",
]
