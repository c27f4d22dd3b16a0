"""Pydantic models for field reports, reference rows and analysis output."""

from __future__ import annotations

from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DamageLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DamageLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, DamageLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, DamageLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, DamageLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_ORDER = [DamageLevel.LOW, DamageLevel.MEDIUM, DamageLevel.HIGH, DamageLevel.CRITICAL]


class Report(BaseModel):
    """One field account of a damaged douar. Immutable once created."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    village_name: str
    province: str
    commune: str
    region: str | None = None
    damage_type: str = ""
    damage_level: DamageLevel = DamageLevel.MEDIUM
    needs: str = ""
    contact_number: str = ""
    timestamp: str = ""
    latitude: float | None = Field(default=None, ge=-90, le=90, allow_inf_nan=False)
    longitude: float | None = Field(default=None, ge=-180, le=180, allow_inf_nan=False)
    maps_link: str | None = None

    @field_validator("damage_level", mode="before")
    @classmethod
    def normalize_damage_level(cls, value: Any) -> DamageLevel:
        from .severity import coerce_level

        return coerce_level(value)

    @model_validator(mode="after")
    def check_coordinates(self) -> "Report":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be both present or both absent")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class HierarchyRow(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    region: str = ""
    province: str = ""
    commune: str = ""
    village: str = ""

    @field_validator("region", "province", "commune", "village", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()


class AnalysisResult(BaseModel):
    summary: str
    priorities: List[str] = Field(default_factory=list)
    recommendations: str
