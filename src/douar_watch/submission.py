"""Report submission: form state → report → remote notify → local store."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from .connectors.webhook import WebhookSync
from .errors import FormValidationError, SyncWarning
from .geolocation import LocationFix, LocationResult, LocationStatus
from .models import DamageLevel, Report
from .settings import is_remote_sync_enabled
from .severity import coerce_level
from .store import ReportStore

logger = logging.getLogger(__name__)

SYNC_WARNING_MESSAGE = "تم الحفظ محلياً ولكن تعذر الإرسال للقاعدة الخارجية."

REQUIRED_FIELDS = ("village_name", "province", "commune")


@dataclass
class ReportForm:
    village_name: str = ""
    province: str = ""
    commune: str = ""
    region: str = ""
    damage_type: str = ""
    damage_level: DamageLevel = DamageLevel.MEDIUM
    needs: str = ""
    contact_number: str = ""
    maps_link: str = ""
    location: Optional[LocationFix] = None
    location_status: LocationStatus = LocationStatus.IDLE

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ReportForm":
        form = cls()
        for name in ("village_name", "province", "commune", "region", "damage_type", "needs", "contact_number"):
            value = payload.get(name)
            if value is not None:
                setattr(form, name, str(value).strip())
        if payload.get("damage_level") not in (None, ""):
            form.damage_level = coerce_level(payload["damage_level"])
        return form

    def validate(self) -> None:
        missing = [name for name in REQUIRED_FIELDS if not str(getattr(self, name) or "").strip()]
        if missing:
            raise FormValidationError(missing)

    def apply_location(self, result: LocationResult) -> None:
        if result.available and result.fix is not None:
            self.location = result.fix
            self.maps_link = result.fix.maps_link
            self.location_status = LocationStatus.SUCCESS
        elif self.location is None:
            self.location_status = LocationStatus.UNAVAILABLE

    def reset(self) -> None:
        # maps_link/location are kept for the next report from the same spot.
        self.village_name = ""
        self.province = ""
        self.commune = ""
        self.region = ""
        self.damage_type = ""
        self.damage_level = DamageLevel.MEDIUM
        self.needs = ""
        self.contact_number = ""


@dataclass
class SubmissionResult:
    report: Report
    warning: Optional[SyncWarning] = None
    synced: bool = False
    location_status: LocationStatus = LocationStatus.IDLE

    @property
    def ok(self) -> bool:
        return self.warning is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "ok" if self.ok else "warning",
            "report": self.report.model_dump(mode="json"),
            "synced": self.synced,
            "warning": str(self.warning) if self.warning else None,
            "location_status": self.location_status.value,
        }


@dataclass
class SubmissionPipeline:
    store: ReportStore
    sync: Optional[WebhookSync] = None
    id_factory: Callable[[], str] = field(default=lambda: str(uuid.uuid4()))

    def build_report(self, form: ReportForm) -> Report:
        fix = form.location
        return Report(
            id=self.id_factory(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            village_name=form.village_name,
            province=form.province,
            commune=form.commune,
            region=form.region or None,
            damage_type=form.damage_type,
            damage_level=form.damage_level,
            needs=form.needs,
            contact_number=form.contact_number,
            maps_link=form.maps_link or None,
            latitude=fix.latitude if fix else None,
            longitude=fix.longitude if fix else None,
        )

    def _notify_remote(self, report: Report) -> tuple[bool, Optional[SyncWarning]]:
        if self.sync is None or not self.sync.url or not is_remote_sync_enabled():
            return False, None
        try:
            self.sync.notify(report)
        except httpx.HTTPError as exc:
            logger.warning("Remote sync failed for report %s: %s", report.id, exc)
            return False, SyncWarning(SYNC_WARNING_MESSAGE, report_id=report.id)
        return True, None

    def submit(self, form: ReportForm, location: Optional[LocationResult] = None) -> SubmissionResult:
        """Save a report locally and notify the webhook.

        Raises FormValidationError before any network call when a required
        field is empty. A failed notify is returned as ``result.warning``;
        the report is stored and the form reset either way.
        """
        form.validate()
        if location is not None:
            form.apply_location(location)

        report = self.build_report(form)
        synced, warning = self._notify_remote(report)
        self.store.add(report)
        form.reset()
        return SubmissionResult(
            report=report,
            warning=warning,
            synced=synced,
            location_status=form.location_status,
        )
