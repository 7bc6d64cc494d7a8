from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

from costapp.logging_config import setup_logging

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "COST_APP_DATA_DIR"
ENV_LOG_LEVEL = "COST_APP_LOG_LEVEL"
STORAGE_KEY = "cost-app-data-v1"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    storage_key: str = STORAGE_KEY
    currency: str = "JPY"
    log_level: str = "INFO"


def _default_data_dir() -> Path:
    return Path.home() / ".cost_app"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable %s: %s", cfg, e)
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    cfg = data_dir / CONFIG_FILE_NAME
    payload = {"data_dir": str(data_dir)}
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Update session for immediate effect
    st.session_state["cost_app_data_dir"] = str(data_dir)


def resolve_data_dir(session_value: str | None = None) -> Path:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if session_value:
        return Path(session_value).expanduser().resolve()
    if os.getenv(ENV_DATA_DIR):
        return Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    default_dir = _default_data_dir()
    persisted = _load_persisted_settings(default_dir)
    return Path(persisted.get("data_dir", default_dir)).expanduser().resolve()


@st.cache_resource
def get_settings() -> Settings:
    data_dir = resolve_data_dir(st.session_state.get("cost_app_data_dir"))
    data_dir.mkdir(parents=True, exist_ok=True)

    level = os.getenv(ENV_LOG_LEVEL, "INFO")
    setup_logging(level)
    return Settings(data_dir=data_dir, db_path=data_dir / "app.db", log_level=level)
