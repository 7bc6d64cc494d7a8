from __future__ import annotations

import json
import logging

from costapp.config import STORAGE_KEY
from costapp.db import ensure_schema, q, x
from costapp.models import Dataset
from costapp.services.demo_data import empty_dataset, sample_dataset
from costapp.utils import iso_now

log = logging.getLogger(__name__)


def export_json(dataset: Dataset) -> str:
    return json.dumps(dataset.to_dict(), ensure_ascii=False, indent=2)


def import_json(text: str) -> Dataset:
    """Parse a whole snapshot; the caller replaces its dataset with the result."""
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise ValueError(f"Snapshot is not valid JSON: {e}") from e
    return Dataset.from_dict(doc)


def load_dataset(conn, storage_key: str = STORAGE_KEY) -> Dataset:
    """
    Stored snapshot for the key, or the sample dataset.

    An unparseable payload is logged and left in place; the caller keeps
    working with the defaults.
    """
    ensure_schema(conn)
    rows = q(conn, "SELECT payload FROM snapshots WHERE storage_key=?", (storage_key,))
    if not rows:
        return sample_dataset()
    try:
        return import_json(rows[0]["payload"])
    except ValueError as e:
        log.warning("Failed to parse stored data under %s: %s", storage_key, e)
        return sample_dataset()


def save_dataset(conn, dataset: Dataset, storage_key: str = STORAGE_KEY) -> None:
    ensure_schema(conn)
    x(
        conn,
        """
        INSERT INTO snapshots (storage_key, payload, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(storage_key) DO UPDATE SET payload=excluded.payload, updated_at=excluded.updated_at
        """,
        (storage_key, json.dumps(dataset.to_dict(), ensure_ascii=False), iso_now()),
    )
    log.debug("Saved snapshot %s (%d products)", storage_key, len(dataset.products))


def clear_dataset(conn, storage_key: str = STORAGE_KEY) -> None:
    ensure_schema(conn)
    x(conn, "DELETE FROM snapshots WHERE storage_key=?", (storage_key,))
    log.info("Cleared stored snapshot %s", storage_key)


def snapshot_info(conn, storage_key: str = STORAGE_KEY) -> dict:
    ensure_schema(conn)
    rows = q(
        conn,
        "SELECT updated_at, LENGTH(payload) AS size FROM snapshots WHERE storage_key=?",
        (storage_key,),
    )
    if not rows:
        return {"stored": False, "updated_at": None, "size": 0}
    return {"stored": True, "updated_at": rows[0]["updated_at"], "size": int(rows[0]["size"])}


def reset_dataset(conn, storage_key: str = STORAGE_KEY) -> Dataset:
    """Drop the stored snapshot and store an empty one in its place."""
    clear_dataset(conn, storage_key)
    empty = empty_dataset()
    save_dataset(conn, empty, storage_key)
    return empty
