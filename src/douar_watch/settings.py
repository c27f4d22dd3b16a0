"""Environment and runtime settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv

from .config import AppConfig
from .feature_flags import get_feature_flag

_ENV_FIELDS = {
    "DW_REPORTS_SHEET_ID": "reports_sheet_id",
    "DW_PROVINCES_SHEET_ID": "provinces_sheet_id",
    "DW_HIERARCHY_SHEET_ID": "hierarchy_sheet_id",
    "DW_FEED_URL_TEMPLATE": "feed_url_template",
    "DW_ENVELOPE_PREFIX_CHARS": "envelope_prefix_chars",
    "DW_ENVELOPE_SUFFIX_CHARS": "envelope_suffix_chars",
    "DW_SUBMISSION_URL": "submission_url",
    "DW_FEED_TIMEOUT_SECONDS": "feed_timeout_seconds",
    "DW_SUBMISSION_TIMEOUT_SECONDS": "submission_timeout_seconds",
    "DW_GEOLOCATION_TIMEOUT_SECONDS": "geolocation_timeout_seconds",
    "DW_STORE_PATH": "store_path",
    "DW_STORE_KEY": "store_key",
}


def load_environment() -> None:
    load_dotenv(override=False)


def load_app_config() -> AppConfig:
    payload: dict[str, str] = {}
    for env_key, field_name in _ENV_FIELDS.items():
        raw = os.getenv(env_key)
        if raw is not None:
            payload[field_name] = raw
    return AppConfig.model_validate(payload)


def is_remote_sync_enabled() -> bool:
    return bool(get_feature_flag("remote_sync_enabled", True))


def is_ai_analysis_enabled() -> bool:
    return bool(get_feature_flag("ai_analysis_enabled", True))


def is_extended_schema_enabled() -> bool:
    return bool(get_feature_flag("extended_schema_enabled", True))


def get_openai_api_key() -> str:
    return os.getenv("OPENAI_API_KEY", "").strip()


def get_openai_model() -> str:
    return os.getenv("OPENAI_MODEL", "gpt-4.1-mini").strip()
