"""Loose raw-severity mapping and the numeric/label encodings of DamageLevel."""

from __future__ import annotations

from typing import Any

from .models import DamageLevel

_NUMERIC = {
    DamageLevel.LOW: "1",
    DamageLevel.MEDIUM: "2",
    DamageLevel.HIGH: "3",
    DamageLevel.CRITICAL: "4",
}

_LABELS = {
    DamageLevel.LOW: "1 - منخفض",
    DamageLevel.MEDIUM: "2 - متوسط",
    DamageLevel.HIGH: "3 - مرتفع",
    DamageLevel.CRITICAL: "4 - حرج جداً",
}


def map_severity(raw: Any) -> DamageLevel:
    """Map an upstream urgency value onto a DamageLevel.

    Checks run in written order and the first hit wins, so "14" and "41"
    both resolve to LOW.
    """
    text = str(raw)
    if "1" in text:
        return DamageLevel.LOW
    if "3" in text:
        return DamageLevel.HIGH
    if "4" in text:
        return DamageLevel.CRITICAL
    return DamageLevel.MEDIUM


def level_to_numeric(level: DamageLevel) -> str:
    return _NUMERIC.get(level, "2")


def level_label(level: DamageLevel) -> str:
    return _LABELS.get(level, _LABELS[DamageLevel.MEDIUM])


def coerce_level(value: Any) -> DamageLevel:
    """Accept an enum member or token as-is, otherwise fall back to map_severity."""
    if isinstance(value, DamageLevel):
        return value
    token = str(value).strip().upper() if value is not None else ""
    if token in DamageLevel.__members__:
        return DamageLevel[token]
    return map_severity(value)
