from __future__ import annotations

import streamlit as st

from costapp.config import get_settings
from costapp.db import get_conn, ensure_schema
from costapp.models import Dataset
from costapp.services.storage import load_dataset, save_dataset


SESSION_KEY = "cost_app_dataset"


def get_conn_ready():
    settings = get_settings()
    conn = get_conn(settings.db_path)
    ensure_schema(conn)
    return settings, conn


def get_dataset() -> Dataset:
    """The session's dataset, hydrated from storage on first access."""
    if SESSION_KEY not in st.session_state:
        settings, conn = get_conn_ready()
        st.session_state[SESSION_KEY] = load_dataset(conn, settings.storage_key)
    return st.session_state[SESSION_KEY]


def commit(dataset: Dataset) -> None:
    """Replace the session dataset and overwrite the stored snapshot."""
    settings, conn = get_conn_ready()
    st.session_state[SESSION_KEY] = dataset
    save_dataset(conn, dataset, settings.storage_key)


def drop_session_dataset() -> None:
    st.session_state.pop(SESSION_KEY, None)
