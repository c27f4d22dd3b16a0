"""One-way report notification to the external form-submission webhook.

The endpoint answers without readable CORS headers in the browser deployment,
so neither the status nor the body is inspected here. Only a failure of the
request itself (DNS, connect, timeout) counts as a sync failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..models import Report
from ..severity import level_to_numeric

logger = logging.getLogger(__name__)


def to_remote_payload(report: Report) -> dict[str, Any]:
    """Translate a report into the webhook's field vocabulary."""
    return {
        "nom_douar": report.village_name,
        "region": report.region or "",
        "province": report.province,
        "commune": report.commune,
        "nature_dommages": report.damage_type,
        "niveau_urgence": level_to_numeric(report.damage_level),
        "besoins_essentiels": report.needs,
        "numero_telephone": report.contact_number,
        "lien_maps": report.maps_link or "",
        "latitude": report.latitude if report.latitude is not None else "",
        "longitude": report.longitude if report.longitude is not None else "",
    }


@dataclass
class WebhookSync:
    url: str
    timeout_seconds: float = 10.0

    def _build_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout_seconds, follow_redirects=False)

    def notify(self, report: Report) -> None:
        """POST the report; raises httpx.HTTPError only if the request cannot be sent."""
        payload = to_remote_payload(report)
        with self._build_client() as client:
            client.post(self.url, json=payload, headers={"Content-Type": "application/json"})
        logger.debug("Report %s sent to webhook", report.id)
