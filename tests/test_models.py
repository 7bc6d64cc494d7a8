"""
test_models.py: tolerant reading of snapshot documents.
"""

from costapp.models import Dataset, EquipmentAllocationEntry, Product


def test_missing_lists_become_empty():
    ds = Dataset.from_dict({"products": []})
    assert ds.shipping_methods == []
    assert ds.cost_entries.equipment_allocations == []
    assert ds.categories.large == []


def test_expected_production_normalized():
    p = Product.from_dict({"id": "p", "name": "x", "expectedProduction": {"periodYears": 0, "quantity": -4}})
    assert p.expected_production.period_years == 1
    assert p.expected_production.quantity == 1


def test_missing_expected_production():
    p = Product.from_dict({"id": "p", "name": "x"})
    assert p.expected_production.quantity == 1
    assert p.equipment_ids == []


def test_usage_hours_absent_vs_zero():
    absent = EquipmentAllocationEntry.from_dict({"id": "a", "allocationRatio": 0.5, "annualQuantity": 10})
    zero = EquipmentAllocationEntry.from_dict({"id": "a", "allocationRatio": 0.5, "annualQuantity": 10, "usageHours": 0})
    assert absent.usage_hours is None
    assert zero.usage_hours == 0


def test_junk_numbers_coerce_to_zero():
    ds = Dataset.from_dict(
        {
            "materials": [{"id": "m", "name": "x", "unitCost": "abc"}],
            "costEntries": {"packaging": [{"id": "k", "productId": "p", "quantity": None, "costPerUnit": "12"}]},
        }
    )
    assert ds.materials[0].unit_cost == 0
    assert ds.cost_entries.packaging[0].quantity == 0
    assert ds.cost_entries.packaging[0].cost_per_unit == 12


def test_non_dict_rows_are_dropped():
    ds = Dataset.from_dict({"materials": [1, "x", None], "categories": "bad", "costEntries": []})
    assert ds.materials == []
    assert ds.categories.large == []
