from __future__ import annotations

import os
from dataclasses import dataclass

GVIZ_URL_ENV = "PROJSTAT_GVIZ_URL"
EXPORT_URL_ENV = "PROJSTAT_EXPORT_URL"
OPENSHEET_URL_ENV = "PROJSTAT_OPENSHEET_URL"
DEFAULT_SHEET_ENV = "PROJSTAT_DEFAULT_SHEET"
TIMEOUT_ENV = "PROJSTAT_TIMEOUT"
LOG_LEVEL_ENV = "PROJSTAT_LOG_LEVEL"

DEFAULT_GVIZ_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq"
DEFAULT_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export"
DEFAULT_OPENSHEET_URL = "https://opensheet.elk.sh/{sheet_id}/{sheet_name}"
DEFAULT_SHEET_NAME = "Sheet1"
DEFAULT_TIMEOUT_SECONDS = 30.0
JSONP_TIMEOUT_SECONDS = 10.0
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class RetrievalConfig:
    gviz_url: str = DEFAULT_GVIZ_URL
    export_url: str = DEFAULT_EXPORT_URL
    opensheet_url: str = DEFAULT_OPENSHEET_URL
    default_sheet_name: str = DEFAULT_SHEET_NAME
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    jsonp_timeout: float = JSONP_TIMEOUT_SECONDS


def get_timeout() -> float:
    raw = os.getenv(TIMEOUT_ENV)
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def get_log_level() -> str:
    return (os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()


def load_retrieval_config() -> RetrievalConfig:
    return RetrievalConfig(
        gviz_url=os.getenv(GVIZ_URL_ENV) or DEFAULT_GVIZ_URL,
        export_url=os.getenv(EXPORT_URL_ENV) or DEFAULT_EXPORT_URL,
        opensheet_url=os.getenv(OPENSHEET_URL_ENV) or DEFAULT_OPENSHEET_URL,
        default_sheet_name=os.getenv(DEFAULT_SHEET_ENV) or DEFAULT_SHEET_NAME,
        timeout=get_timeout(),
    )
