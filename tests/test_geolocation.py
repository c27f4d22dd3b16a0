import time

from douar_watch.errors import GeolocationError
from douar_watch.geolocation import ClientLocator, LocationFix, LocationStatus, acquire_location


def test_client_locator_success() -> None:
    result = acquire_location(ClientLocator(31.2, -7.8))
    assert result.status is LocationStatus.SUCCESS
    assert result.fix == LocationFix(31.2, -7.8)
    assert result.fix.maps_link == "https://www.google.com/maps?q=31.2,-7.8"


def test_missing_position_is_unavailable() -> None:
    result = acquire_location(ClientLocator(None, None))
    assert result.status is LocationStatus.UNAVAILABLE
    assert result.fix is None


def test_unsupported_locator() -> None:
    assert acquire_location(None).status is LocationStatus.UNAVAILABLE


def test_denied_is_unavailable() -> None:
    def denied(timeout: float, high_accuracy: bool) -> LocationFix:
        raise GeolocationError("User denied geolocation", reason="denied")

    result = acquire_location(denied)
    assert result.status is LocationStatus.UNAVAILABLE
    assert "denied" in result.error


def test_timeout_does_not_hang() -> None:
    def slow(timeout: float, high_accuracy: bool) -> LocationFix:
        time.sleep(1.0)
        return LocationFix(0.0, 0.0)

    started = time.monotonic()
    result = acquire_location(slow, timeout_seconds=0.05)
    assert result.status is LocationStatus.UNAVAILABLE
    assert result.error == "timeout"
    assert time.monotonic() - started < 0.9


def test_locator_receives_high_accuracy_and_timeout() -> None:
    seen = {}

    def locator(timeout: float, high_accuracy: bool) -> LocationFix:
        seen.update(timeout=timeout, high_accuracy=high_accuracy)
        return LocationFix(30.0, -8.0)

    acquire_location(locator)
    assert seen == {"timeout": 5.0, "high_accuracy": True}


def test_unexpected_locator_failure_is_unavailable() -> None:
    def broken(timeout: float, high_accuracy: bool) -> LocationFix:
        raise RuntimeError("sensor crashed")

    result = acquire_location(broken)
    assert result.status is LocationStatus.UNAVAILABLE
    assert result.error == "sensor crashed"


def test_non_finite_client_position_is_unavailable() -> None:
    assert acquire_location(ClientLocator(float("nan"), -7.8)).status is LocationStatus.UNAVAILABLE
