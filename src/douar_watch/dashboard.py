"""Dashboard view-model: remote report list with local fallback."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .connectors.sheets import EXTENDED_REPORT_COLUMNS, LEGACY_REPORT_COLUMNS, SheetFeedConnector
from .errors import FeedError
from .models import DamageLevel, Report
from .settings import is_extended_schema_enabled
from .severity import level_label

logger = logging.getLogger(__name__)

FEED_FAILURE_NOTICE = "فشل جلب المعطيات المركزية."

_BADGES = {
    DamageLevel.CRITICAL: "badge-critical",
    DamageLevel.HIGH: "badge-high",
    DamageLevel.MEDIUM: "badge-medium",
    DamageLevel.LOW: "badge-low",
}


def level_badge(level: DamageLevel) -> str:
    return _BADGES.get(level, _BADGES[DamageLevel.LOW])


def level_counts(reports: List[Report]) -> dict[str, int]:
    counts = Counter(r.damage_level for r in reports)
    return {level.value: counts.get(level, 0) for level in DamageLevel}


@dataclass
class ReportFeedView:
    """Remote feed state for one screen (dashboard or map).

    Only one refresh runs at a time; a refresh requested while another is in
    flight returns the current list instead of starting a second fetch.
    """

    connector: SheetFeedConnector
    url: str
    namespace: str = "remote"
    reverse: bool = True
    fallback: Optional[Callable[[], List[Report]]] = None
    reports: List[Report] = field(default_factory=list)
    notice: Optional[str] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def is_loading(self) -> bool:
        return self._lock.locked()

    def refresh(self) -> List[Report]:
        if not self._lock.acquire(blocking=False):
            logger.debug("Refresh of %s skipped; fetch already in progress", self.namespace)
            return list(self.reports)
        try:
            columns = EXTENDED_REPORT_COLUMNS if is_extended_schema_enabled() else LEGACY_REPORT_COLUMNS
            try:
                fetched = self.connector.fetch_table(
                    self.url,
                    namespace=self.namespace,
                    reverse=self.reverse,
                    columns=columns,
                )
            except FeedError as exc:
                logger.warning("Feed %s unavailable, using fallback: %s", self.namespace, exc)
                self.notice = FEED_FAILURE_NOTICE
                if self.fallback is not None:
                    self.reports = list(self.fallback())
                return list(self.reports)
            self.reports = fetched
            self.notice = None
            return list(fetched)
        finally:
            self._lock.release()

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "is_loading": self.is_loading,
            "notice": self.notice,
            "counts": level_counts(self.reports),
            "reports": [
                {
                    **r.model_dump(mode="json"),
                    "damage_label": level_label(r.damage_level),
                    "badge": level_badge(r.damage_level),
                    "date": r.timestamp.split("T")[0],
                }
                for r in self.reports
            ],
        }
