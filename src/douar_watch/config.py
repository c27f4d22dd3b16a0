"""Application configuration schema and validation using pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REPORTS_SHEET_ID = "1OYnXOT8V9cV37HCsBeQ_o_ICMf4euKJ-0MgboQZbB30"
DEFAULT_PROVINCES_SHEET_ID = "17xE9i0PhTYIOgtGr7S9VPbtbnH7firq6K8iihd02uZA"
# The region/province/commune/douar sheet has no public default; it must be configured.
DEFAULT_HIERARCHY_SHEET_ID = ""
DEFAULT_FEED_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:json"
DEFAULT_SUBMISSION_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbxNOHHaQ9fp5hKSHhDu4dM5mb1HI2kTV8UnLp3_ZcySraEi9I96PUfN9gELeWWkEd0-/exec"
)

# "/*O_o*/\ngoogle.visualization.Query.setResponse(" ... ");"
GVIZ_PREFIX_CHARS = 47
GVIZ_SUFFIX_CHARS = 2

FALLBACK_MAP_CENTER = (31.7917, -7.0926)
FALLBACK_MAP_ZOOM = 7


def default_store_path() -> Path:
    return Path.home() / ".douar-watch" / "local_storage.json"


class AppConfig(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reports_sheet_id: str = DEFAULT_REPORTS_SHEET_ID
    provinces_sheet_id: str = DEFAULT_PROVINCES_SHEET_ID
    hierarchy_sheet_id: str = DEFAULT_HIERARCHY_SHEET_ID
    feed_url_template: str = DEFAULT_FEED_URL_TEMPLATE
    envelope_prefix_chars: int = Field(default=GVIZ_PREFIX_CHARS, ge=0)
    envelope_suffix_chars: int = Field(default=GVIZ_SUFFIX_CHARS, ge=0)
    submission_url: str = DEFAULT_SUBMISSION_URL
    feed_timeout_seconds: float = Field(default=20.0, gt=0)
    submission_timeout_seconds: float = Field(default=10.0, gt=0)
    geolocation_timeout_seconds: float = Field(default=5.0, gt=0)
    store_path: Path = Field(default_factory=default_store_path)
    store_key: str = Field(default="village_reports", min_length=1)
    map_center: Tuple[float, float] = FALLBACK_MAP_CENTER
    map_zoom: int = Field(default=FALLBACK_MAP_ZOOM, ge=1, le=19)

    @field_validator("reports_sheet_id", "provinces_sheet_id")
    @classmethod
    def validate_sheet_id(cls, value: str) -> str:
        if not value:
            raise ValueError("Spreadsheet id must not be empty.")
        return value

    @field_validator("feed_url_template")
    @classmethod
    def validate_template(cls, value: str) -> str:
        if "{sheet_id}" not in value:
            raise ValueError("feed_url_template must contain a {sheet_id} placeholder.")
        return value

    def feed_url(self, sheet_id: str) -> str:
        return self.feed_url_template.format(sheet_id=sheet_id)

    @property
    def reports_url(self) -> str:
        return self.feed_url(self.reports_sheet_id)

    @property
    def provinces_url(self) -> str:
        return self.feed_url(self.provinces_sheet_id)

    @property
    def hierarchy_url(self) -> str:
        """Empty when no hierarchy sheet is configured."""
        if not self.hierarchy_sheet_id:
            return ""
        return self.feed_url(self.hierarchy_sheet_id)
