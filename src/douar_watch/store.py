"""Durable local persistence for the report collection."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import default_store_path
from .models import Report

logger = logging.getLogger(__name__)


class LocalStorage:
    """Key-value slots kept in one JSON file, values stored as JSON text."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path or default_store_path()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Local storage file %s is corrupt; starting empty", self.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        payload = self._read()
        payload[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


class ReportStore:
    """In-memory report list, newest first, rewritten to storage on every mutation."""

    def __init__(self, storage: LocalStorage, key: str = "village_reports") -> None:
        self._storage = storage
        self._key = key
        self._reports: List[Report] = []
        self._lock = threading.Lock()

    @classmethod
    def at_path(cls, path: Optional[Path] = None, key: str = "village_reports") -> "ReportStore":
        store = cls(LocalStorage(path), key=key)
        store.load()
        return store

    def load(self) -> List[Report]:
        raw = self._storage.get_item(self._key)
        reports: List[Report] = []
        if raw:
            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Stored report collection is not valid JSON; ignoring it")
                payload = []
            for item in payload if isinstance(payload, list) else []:
                try:
                    reports.append(Report.model_validate(item))
                except ValidationError as exc:
                    logger.warning("Skipping stored report that failed validation: %s", exc)
        with self._lock:
            self._reports = reports
        return list(reports)

    def all(self) -> List[Report]:
        with self._lock:
            return list(self._reports)

    def get(self, report_id: str) -> Report | None:
        with self._lock:
            return next((r for r in self._reports if r.id == report_id), None)

    def __len__(self) -> int:
        return len(self._reports)

    def add(self, report: Report) -> List[Report]:
        with self._lock:
            if any(r.id == report.id for r in self._reports):
                raise ValueError(f"Report id already stored: {report.id}")
            self._reports = [report, *self._reports]
            self._persist()
            return list(self._reports)

    def remove(self, report_id: str) -> List[Report]:
        with self._lock:
            remaining = [r for r in self._reports if r.id != report_id]
            if len(remaining) != len(self._reports):
                self._reports = remaining
                self._persist()
            return list(self._reports)

    def _persist(self) -> None:
        payload = [r.model_dump(mode="json") for r in self._reports]
        self._storage.set_item(self._key, json.dumps(payload, ensure_ascii=False))
        logger.debug("Persisted %d reports to %s", len(payload), self._storage.path)
