"""Region → province → commune → douar lookup with cascading selection.

Rows come from the hierarchy reference sheet. Every query takes the values
currently chosen for the ancestor levels (empty string = unconstrained) and
the text typed so far in the queried field; matching is a case-sensitive
substring test and results are distinct, non-blank and sorted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .models import HierarchyRow

LEVELS = ("region", "province", "commune", "village")


class HierarchyIndex:
    def __init__(self, rows: Iterable[HierarchyRow]) -> None:
        self._rows: List[HierarchyRow] = [r if isinstance(r, HierarchyRow) else HierarchyRow.model_validate(r) for r in rows]

    def __len__(self) -> int:
        return len(self._rows)

    @classmethod
    def from_tuples(cls, rows: Iterable[tuple[str, str, str, str]]) -> "HierarchyIndex":
        return cls(
            HierarchyRow(region=region, province=province, commune=commune, village=village)
            for region, province, commune, village in rows
        )

    def _distinct(self, level: str, constraints: dict[str, str], filter_text: str) -> list[str]:
        values: set[str] = set()
        for row in self._rows:
            if any(want and getattr(row, name) != want for name, want in constraints.items()):
                continue
            value = getattr(row, level)
            if not value:
                continue
            if filter_text and filter_text not in value:
                continue
            values.add(value)
        return sorted(values)

    def regions(self, filter_text: str = "") -> list[str]:
        return self._distinct("region", {}, filter_text)

    def provinces(self, region: str = "", filter_text: str = "") -> list[str]:
        return self._distinct("province", {"region": region}, filter_text)

    def communes(self, region: str = "", province: str = "", filter_text: str = "") -> list[str]:
        return self._distinct("commune", {"region": region, "province": province}, filter_text)

    def villages(self, region: str = "", province: str = "", commune: str = "", filter_text: str = "") -> list[str]:
        return self._distinct(
            "village",
            {"region": region, "province": province, "commune": commune},
            filter_text,
        )


@dataclass
class LocationSelection:
    """Current cascading choice. Choosing a new value at one level clears the levels below it."""

    region: str = ""
    province: str = ""
    commune: str = ""
    village: str = ""

    def select(self, level: str, value: str) -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown hierarchy level {level!r}")
        value = (value or "").strip()
        if getattr(self, level) == value:
            return
        setattr(self, level, value)
        for child in LEVELS[LEVELS.index(level) + 1 :]:
            setattr(self, child, "")

    def select_region(self, value: str) -> None:
        self.select("region", value)

    def select_province(self, value: str) -> None:
        self.select("province", value)

    def select_commune(self, value: str) -> None:
        self.select("commune", value)

    def select_village(self, value: str) -> None:
        self.select("village", value)

    def options(self, index: HierarchyIndex, level: str, filter_text: str = "") -> list[str]:
        """Candidates for ``level`` constrained by this selection's ancestors."""
        if level == "region":
            return index.regions(filter_text)
        if level == "province":
            return index.provinces(self.region, filter_text)
        if level == "commune":
            return index.communes(self.region, self.province, filter_text)
        if level == "village":
            return index.villages(self.region, self.province, self.commune, filter_text)
        raise ValueError(f"Unknown hierarchy level {level!r}")

    def to_dict(self) -> dict[str, str]:
        return {level: getattr(self, level) for level in LEVELS}
