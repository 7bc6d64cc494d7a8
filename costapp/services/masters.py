from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import TypeVar

from costapp.models import (
    Categories,
    CategoryLarge,
    CategoryMedium,
    CategorySmall,
    Dataset,
    Equipment,
    LaborRole,
    Material,
    PackagingItem,
    ShippingMethod,
)
from costapp.utils import new_id

log = logging.getLogger(__name__)

R = TypeVar("R")

# kind -> Dataset attribute holding the list
MASTER_LISTS = {
    "material": "materials",
    "packaging_item": "packaging_items",
    "shipping_method": "shipping_methods",
    "labor_role": "labor_roles",
    "equipment": "equipments",
}


def _check_name(record) -> None:
    if not str(record.name or "").strip():
        raise ValueError("Name is required.")


def _with_id(record: R) -> R:
    return record if record.id else replace(record, id=new_id())


def _append(records: list[R], record: R) -> list[R]:
    _check_name(record)
    record = _with_id(record)
    if any(r.id == record.id for r in records):
        raise ValueError(f"Duplicate id: {record.id}")
    return records + [record]


def _swap(records: list[R], record: R) -> list[R]:
    _check_name(record)
    if not any(r.id == record.id for r in records):
        raise ValueError(f"Record not found: {record.id}")
    return [record if r.id == record.id else r for r in records]


def _add_master(dataset: Dataset, kind: str, record) -> Dataset:
    attr = MASTER_LISTS[kind]
    out = replace(dataset, **{attr: _append(getattr(dataset, attr), record)})
    log.info("Added %s %s", kind, record.name)
    return out


def _update_master(dataset: Dataset, kind: str, record) -> Dataset:
    attr = MASTER_LISTS[kind]
    return replace(dataset, **{attr: _swap(getattr(dataset, attr), record)})


def add_material(dataset: Dataset, record: Material) -> Dataset:
    return _add_master(dataset, "material", record)


def update_material(dataset: Dataset, record: Material) -> Dataset:
    return _update_master(dataset, "material", record)


def add_packaging_item(dataset: Dataset, record: PackagingItem) -> Dataset:
    return _add_master(dataset, "packaging_item", record)


def update_packaging_item(dataset: Dataset, record: PackagingItem) -> Dataset:
    return _update_master(dataset, "packaging_item", record)


def add_shipping_method(dataset: Dataset, record: ShippingMethod) -> Dataset:
    return _add_master(dataset, "shipping_method", record)


def update_shipping_method(dataset: Dataset, record: ShippingMethod) -> Dataset:
    return _update_master(dataset, "shipping_method", record)


def add_labor_role(dataset: Dataset, record: LaborRole) -> Dataset:
    return _add_master(dataset, "labor_role", record)


def update_labor_role(dataset: Dataset, record: LaborRole) -> Dataset:
    return _update_master(dataset, "labor_role", record)


def add_equipment(dataset: Dataset, record: Equipment) -> Dataset:
    return _add_master(dataset, "equipment", record)


def update_equipment(dataset: Dataset, record: Equipment) -> Dataset:
    return _update_master(dataset, "equipment", record)


# ---- categories (Large > Medium > Small) ----


def _require_parent(records: list, parent_id: str, label: str) -> None:
    if not any(r.id == parent_id for r in records):
        raise ValueError(f"{label} category not found.")


def _with_categories(dataset: Dataset, **changes) -> Dataset:
    return replace(dataset, categories=replace(dataset.categories, **changes))


def add_large_category(dataset: Dataset, record: CategoryLarge) -> Dataset:
    return _with_categories(dataset, large=_append(dataset.categories.large, record))


def update_large_category(dataset: Dataset, record: CategoryLarge) -> Dataset:
    return _with_categories(dataset, large=_swap(dataset.categories.large, record))


def add_medium_category(dataset: Dataset, record: CategoryMedium) -> Dataset:
    _require_parent(dataset.categories.large, record.large_id, "Large")
    return _with_categories(dataset, medium=_append(dataset.categories.medium, record))


def update_medium_category(dataset: Dataset, record: CategoryMedium) -> Dataset:
    _require_parent(dataset.categories.large, record.large_id, "Large")
    return _with_categories(dataset, medium=_swap(dataset.categories.medium, record))


def add_small_category(dataset: Dataset, record: CategorySmall) -> Dataset:
    _require_parent(dataset.categories.medium, record.medium_id, "Medium")
    return _with_categories(dataset, small=_append(dataset.categories.small, record))


def update_small_category(dataset: Dataset, record: CategorySmall) -> Dataset:
    _require_parent(dataset.categories.medium, record.medium_id, "Medium")
    return _with_categories(dataset, small=_swap(dataset.categories.small, record))


def category_path(categories: Categories, large_id=None, medium_id=None, small_id=None) -> str:
    names = [
        next((c.name for c in categories.large if c.id == large_id), None),
        next((c.name for c in categories.medium if c.id == medium_id), None),
        next((c.name for c in categories.small if c.id == small_id), None),
    ]
    return " / ".join(n for n in names if n) or "-"


def option_labels(records) -> dict[str, str]:
    """id -> picker label; a name shared by several records gets its id appended."""
    counts = Counter(r.name for r in records)
    labels: dict[str, str] = {}
    for r in records:
        labels.setdefault(r.id, r.name if counts[r.name] == 1 else f"{r.name} ({r.id})")
    return labels
