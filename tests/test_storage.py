"""
test_storage.py: snapshot persistence under a storage key, and JSON import/export.
"""

import json
import logging

import pytest

from costapp.db import q
from costapp.services.costing import compute_unit_cost
from costapp.services.storage import (
    clear_dataset,
    export_json,
    import_json,
    load_dataset,
    reset_dataset,
    save_dataset,
    snapshot_info,
)

KEY = "cost-app-data-v1"


def test_absent_key_loads_sample(conn):
    ds = load_dataset(conn, KEY)
    assert [p.id for p in ds.products] == ["prod-1"]
    assert snapshot_info(conn, KEY)["stored"] is False


def test_save_then_load(conn, sample):
    sample.products[0].name = "改名トート"
    save_dataset(conn, sample, KEY)
    loaded = load_dataset(conn, KEY)
    assert loaded.products[0].name == "改名トート"
    assert compute_unit_cost("prod-1", loaded) == compute_unit_cost("prod-1", sample)


def test_save_overwrites(conn, sample, empty):
    save_dataset(conn, sample, KEY)
    save_dataset(conn, empty, KEY)
    assert load_dataset(conn, KEY).products == []
    assert len(q(conn, "SELECT * FROM snapshots")) == 1


def test_keys_are_independent(conn, sample, empty):
    save_dataset(conn, empty, KEY)
    save_dataset(conn, sample, "other")
    assert load_dataset(conn, KEY).products == []
    assert len(load_dataset(conn, "other").products) == 1


def test_malformed_payload_keeps_defaults_and_row(conn, caplog):
    conn.execute(
        "INSERT INTO snapshots (storage_key, payload, updated_at) VALUES (?, ?, ?)",
        (KEY, "{not json", "2024-01-01T00:00:00+00:00"),
    )
    conn.commit()

    with caplog.at_level(logging.WARNING, logger="costapp"):
        ds = load_dataset(conn, KEY)

    assert [p.id for p in ds.products] == ["prod-1"]
    assert "Failed to parse stored data" in caplog.text
    rows = q(conn, "SELECT payload FROM snapshots WHERE storage_key=?", (KEY,))
    assert rows[0]["payload"] == "{not json"


def test_clear(conn, empty):
    save_dataset(conn, empty, KEY)
    clear_dataset(conn, KEY)
    assert snapshot_info(conn, KEY)["stored"] is False


def test_reset_stores_an_empty_snapshot(conn, sample):
    save_dataset(conn, sample, KEY)
    ds = reset_dataset(conn, KEY)
    assert ds.products == []
    assert snapshot_info(conn, KEY)["stored"] is True
    # A fresh load must not fall back to the sample again.
    reloaded = load_dataset(conn, KEY)
    assert reloaded.products == []
    assert reloaded.cost_entries.count() == 0


def test_huge_integer_in_stored_payload_reads_as_zero(conn, sample):
    doc = json.loads(export_json(sample))
    doc["costEntries"]["materials"][0]["costPerUnit"] = 10**400
    conn.execute(
        "INSERT INTO snapshots (storage_key, payload, updated_at) VALUES (?, ?, ?)",
        (KEY, json.dumps(doc), "2024-01-01T00:00:00+00:00"),
    )
    conn.commit()

    ds = load_dataset(conn, KEY)
    assert [p.id for p in ds.products] == ["prod-1"]
    assert ds.cost_entries.materials[0].cost_per_unit == 0
    assert compute_unit_cost("prod-1", ds).total >= 0


def test_export_uses_camel_case_layout(sample):
    doc = json.loads(export_json(sample))
    assert set(doc) == {
        "categories", "materials", "packagingItems", "shippingMethods",
        "laborRoles", "equipments", "products", "costEntries",
    }
    assert doc["products"][0]["expectedProduction"] == {"periodYears": 1, "quantity": 3000}
    assert doc["costEntries"]["equipmentAllocations"][0]["usageHours"] == 0.6
    # Optional fields that are unset are left out, not written as null.
    assert "hourlyRateOverride" not in doc["costEntries"]["labor"][0]


def test_import_round_trip_preserves_totals(sample):
    again = import_json(export_json(sample))
    assert again == sample
    assert compute_unit_cost("prod-1", again).total == pytest.approx(3503.67, abs=0.01)


@pytest.mark.parametrize("text", ["", "[1, 2]", "{oops", "null"])
def test_import_rejects_garbage(text):
    with pytest.raises(ValueError):
        import_json(text)
