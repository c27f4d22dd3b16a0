"""Best-effort location acquisition with a hard timeout."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .errors import GeolocationError

logger = logging.getLogger(__name__)

MAPS_LINK_TEMPLATE = "https://www.google.com/maps?q={lat},{lng}"


class LocationStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LocationFix:
    latitude: float
    longitude: float

    @property
    def maps_link(self) -> str:
        return MAPS_LINK_TEMPLATE.format(lat=self.latitude, lng=self.longitude)


@dataclass(frozen=True)
class LocationResult:
    status: LocationStatus
    fix: Optional[LocationFix] = None
    error: str = ""

    @property
    def available(self) -> bool:
        return self.status is LocationStatus.SUCCESS and self.fix is not None


# A locator receives (timeout_seconds, high_accuracy) and returns a fix or raises GeolocationError.
Locator = Callable[[float, bool], LocationFix]


@dataclass(frozen=True)
class ClientLocator:
    """Coordinates reported by the submitting device."""

    latitude: float | None
    longitude: float | None

    def __call__(self, timeout_seconds: float, high_accuracy: bool) -> LocationFix:
        if self.latitude is None or self.longitude is None:
            raise GeolocationError("Client did not report a position", reason="unsupported")
        try:
            lat = float(self.latitude)
            lng = float(self.longitude)
        except (TypeError, ValueError) as exc:
            raise GeolocationError(f"Invalid client position: {exc}", reason="invalid") from exc
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            raise GeolocationError("Client position out of range", reason="invalid")
        return LocationFix(latitude=lat, longitude=lng)


def acquire_location(
    locator: Optional[Locator],
    *,
    timeout_seconds: float = 5.0,
    high_accuracy: bool = True,
) -> LocationResult:
    """Never raises; denial, timeout and unsupported all map to UNAVAILABLE.

    A locator still running at the timeout is abandoned, not interrupted.
    """
    if locator is None:
        return LocationResult(status=LocationStatus.UNAVAILABLE, error="geolocation unsupported")

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="geolocation")
    future = executor.submit(locator, timeout_seconds, high_accuracy)
    try:
        fix = future.result(timeout=timeout_seconds)
    except FutureTimeout:
        logger.info("Geolocation timed out after %.1fs", timeout_seconds)
        return LocationResult(status=LocationStatus.UNAVAILABLE, error="timeout")
    except GeolocationError as exc:
        logger.info("Geolocation unavailable (%s): %s", exc.reason, exc)
        return LocationResult(status=LocationStatus.UNAVAILABLE, error=str(exc))
    except Exception as exc:
        logger.warning("Locator failed: %s", exc)
        return LocationResult(status=LocationStatus.UNAVAILABLE, error=str(exc))
    finally:
        executor.shutdown(wait=False)
    return LocationResult(status=LocationStatus.SUCCESS, fix=fix)
