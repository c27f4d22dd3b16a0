"""Explicit application context shared by the CLI and the HTTP server."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from .config import AppConfig
from .connectors.sheets import SheetFeedConnector
from .connectors.webhook import WebhookSync
from .dashboard import ReportFeedView
from .errors import FeedError
from .hierarchy import HierarchyIndex
from .store import LocalStorage, ReportStore
from .submission import SubmissionPipeline

logger = logging.getLogger(__name__)


@dataclass
class FieldReportingApp:
    config: AppConfig
    store: ReportStore
    connector: SheetFeedConnector
    pipeline: SubmissionPipeline
    dashboard_feed: ReportFeedView
    map_feed: ReportFeedView
    _hierarchy: Optional[HierarchyIndex] = field(default=None, init=False, repr=False)
    _provinces: Optional[list[str]] = field(default=None, init=False, repr=False)
    _reference_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def from_config(cls, config: AppConfig) -> "FieldReportingApp":
        store = ReportStore(LocalStorage(config.store_path), key=config.store_key)
        store.load()
        connector = SheetFeedConnector(
            timeout_seconds=config.feed_timeout_seconds,
            prefix_chars=config.envelope_prefix_chars,
            suffix_chars=config.envelope_suffix_chars,
        )
        sync = None
        if config.submission_url:
            sync = WebhookSync(url=config.submission_url, timeout_seconds=config.submission_timeout_seconds)
        return cls(
            config=config,
            store=store,
            connector=connector,
            pipeline=SubmissionPipeline(store=store, sync=sync),
            dashboard_feed=ReportFeedView(
                connector=connector,
                url=config.reports_url,
                namespace="remote",
                reverse=True,
                fallback=store.all,
            ),
            map_feed=ReportFeedView(
                connector=connector,
                url=config.reports_url,
                namespace="map",
                reverse=False,
            ),
        )

    def hierarchy(self, *, refresh: bool = False) -> HierarchyIndex:
        """Hierarchy index, fetched once; raises FeedError if the first fetch fails."""
        with self._reference_lock:
            if self._hierarchy is None or refresh:
                if not self.config.hierarchy_url:
                    raise FeedError("hierarchy sheet not configured")
                rows = self.connector.fetch_hierarchy_rows(self.config.hierarchy_url)
                self._hierarchy = HierarchyIndex(rows)
                logger.info("Hierarchy index built from %d rows", len(rows))
            return self._hierarchy

    def provinces(self, *, refresh: bool = False) -> list[str]:
        with self._reference_lock:
            if self._provinces is None or refresh:
                self._provinces = self.connector.fetch_provinces(self.config.provinces_url)
            return list(self._provinces)
