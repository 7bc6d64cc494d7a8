from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, TypeVar

from costapp.models import (
    Dataset,
    Equipment,
    EquipmentAllocationEntry,
    LaborCostEntry,
    LaborRole,
    Product,
)
from costapp.utils import num, safe_div

log = logging.getLogger(__name__)

UNSET_PRODUCT_NAME = "未設定"

T = TypeVar("T")


@dataclass(frozen=True)
class CostBreakdown:
    material: float = 0.0
    packaging: float = 0.0
    labor: float = 0.0
    outsourcing: float = 0.0
    development: float = 0.0
    equipment: float = 0.0
    logistics: float = 0.0
    electricity: float = 0.0
    total: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "material": self.material,
            "packaging": self.packaging,
            "labor": self.labor,
            "outsourcing": self.outsourcing,
            "development": self.development,
            "equipment": self.equipment,
            "logistics": self.logistics,
            "electricity": self.electricity,
            "total": self.total,
        }


def _index(records: list[T]) -> dict[str, T]:
    # First record wins on duplicate ids, matching a linear find().
    out: dict[str, T] = {}
    for r in records:
        out.setdefault(r.id, r)
    return out


def _nonneg(v: float) -> float:
    return max(num(v), 0.0)


# ---- fallback resolution ----


def resolve_product_quantity(product: Optional[Product]) -> float:
    """Expected production quantity used to spread one-off costs; never below 1."""
    if product is None:
        return 1.0
    return max(num(product.expected_production.quantity), 1.0)


def resolve_hourly_rate(entry: LaborCostEntry, role: Optional[LaborRole]) -> float:
    """Override first, then the role's rate, then 0 for a dangling role."""
    if entry.hourly_rate_override is not None:
        return num(entry.hourly_rate_override)
    if role is not None:
        return num(role.hourly_rate)
    return 0.0


def annual_equipment_cost(equipment: Equipment) -> float:
    return num(equipment.acquisition_cost) / max(num(equipment.amortization_years), 1.0)


def total_usage_hours(entries: list[EquipmentAllocationEntry]) -> float:
    return sum(num(e.usage_hours) for e in entries)


def resolve_equipment_ratio(entry: EquipmentAllocationEntry, total_hours: float) -> float:
    """
    Share of the equipment's annual cost carried by this entry.

    Measured hours win whenever the product's allocations record any positive
    hours in total; an entry without hours in such a group counts as 0 hours.
    Otherwise the manually entered allocation ratio applies.
    """
    if total_hours > 0 and entry.usage_hours is not None:
        return num(entry.usage_hours) / total_hours
    return num(entry.allocation_ratio)


# ---- per-category sums ----


def _development_cost(dataset: Dataset, product_id: str, quantity: float) -> float:
    total = 0.0
    for e in dataset.cost_entries.development:
        if e.product_id != product_id:
            continue
        spend = num(e.prototype_labor_cost) + num(e.prototype_material_cost) + num(e.tooling_cost)
        amortized = spend / max(num(e.amortization_years), 1.0)
        total += amortized / quantity
    return total


def _labor_cost(dataset: Dataset, product_id: str) -> float:
    roles = _index(dataset.labor_roles)
    total = 0.0
    for e in dataset.cost_entries.labor:
        if e.product_id != product_id:
            continue
        role = roles.get(e.labor_role_id)
        if role is None and e.hourly_rate_override is None:
            log.debug("Labor entry %s references missing role %s", e.id, e.labor_role_id)
        total += resolve_hourly_rate(e, role) * num(e.hours) * num(e.people_count)
    return total


def _equipment_cost(dataset: Dataset, product_id: str, quantity: float) -> float:
    equipments = _index(dataset.equipments)
    entries = [e for e in dataset.cost_entries.equipment_allocations if e.product_id == product_id]
    hours = total_usage_hours(entries)

    total = 0.0
    for e in entries:
        equipment = equipments.get(e.equipment_id)
        if equipment is None:
            log.debug("Allocation %s references missing equipment %s", e.id, e.equipment_id)
            continue
        ratio = resolve_equipment_ratio(e, hours)
        divisor = max(num(e.annual_quantity) or quantity, 1.0)
        total += annual_equipment_cost(equipment) * ratio / divisor
    return total


def compute_unit_cost(product_id: str, dataset: Dataset) -> CostBreakdown:
    """
    Per-unit cost of one product across the eight cost categories.

    Reads the dataset only. An unknown product id is not an error: its
    quantity falls back to 1 and whatever entries carry that id are summed.
    Currencies are not converted; amounts are added as raw magnitudes.
    """
    entries = dataset.cost_entries
    product = next((p for p in dataset.products if p.id == product_id), None)
    quantity = resolve_product_quantity(product)

    material = sum(num(e.cost_per_unit) for e in entries.materials if e.product_id == product_id)
    packaging = sum(
        num(e.quantity) * num(e.cost_per_unit) for e in entries.packaging if e.product_id == product_id
    )
    labor = _labor_cost(dataset, product_id)
    outsourcing = sum(num(e.cost_per_unit) for e in entries.outsourcing if e.product_id == product_id)
    development = _development_cost(dataset, product_id, quantity)
    equipment = _equipment_cost(dataset, product_id, quantity)
    logistics = sum(num(e.cost_per_unit) for e in entries.logistics if e.product_id == product_id)
    electricity = sum(num(e.cost_per_unit) for e in entries.electricity if e.product_id == product_id)

    parts = [
        _nonneg(material),
        _nonneg(packaging),
        _nonneg(labor),
        _nonneg(outsourcing),
        _nonneg(development),
        _nonneg(equipment),
        _nonneg(logistics),
        _nonneg(electricity),
    ]
    return CostBreakdown(*parts, total=sum(parts))


def compute_all_unit_costs(dataset: Dataset) -> list[tuple[Product, CostBreakdown]]:
    return [(p, compute_unit_cost(p.id, dataset)) for p in dataset.products]


# ---- summary groupings ----


@dataclass
class MaterialUsageRow:
    product_name: str
    usage_ratio: Optional[float]
    cost_share: float
    lot_size: Optional[float]


@dataclass
class MaterialUsageGroup:
    material_id: str
    material_name: str
    unit: str
    currency: str
    base_unit_cost: float
    supplier: Optional[str]
    total_usage_ratio: Optional[float] = None
    entries: list[MaterialUsageRow] = field(default_factory=list)


def material_usage_groups(dataset: Dataset) -> list[MaterialUsageGroup]:
    """Material entries grouped by material; entries whose material is gone are skipped."""
    materials = _index(dataset.materials)
    products = _index(dataset.products)
    groups: dict[str, MaterialUsageGroup] = {}

    for e in dataset.cost_entries.materials:
        m = materials.get(e.material_id)
        if m is None:
            continue
        p = products.get(e.product_id)
        g = groups.get(m.id)
        if g is None:
            g = groups[m.id] = MaterialUsageGroup(
                material_id=m.id,
                material_name=m.name,
                unit=m.unit,
                currency=m.currency,
                base_unit_cost=m.unit_cost,
                supplier=m.supplier,
            )
        g.currency = e.currency or g.currency
        if e.usage_ratio is not None:
            g.total_usage_ratio = (g.total_usage_ratio or 0.0) + num(e.usage_ratio)
        g.entries.append(
            MaterialUsageRow(
                product_name=p.name if p else UNSET_PRODUCT_NAME,
                usage_ratio=e.usage_ratio,
                cost_share=num(e.cost_per_unit),
                lot_size=p.production_lot_size if p else None,
            )
        )
    return list(groups.values())


@dataclass
class EquipmentUsageRow:
    product_name: str
    allocation_ratio: float
    annual_quantity: float
    usage_hours: Optional[float]
    unit_cost: float


@dataclass
class EquipmentUsageGroup:
    equipment: Equipment
    total_usage_hours: Optional[float] = None
    entries: list[EquipmentUsageRow] = field(default_factory=list)

    def share_pct(self, row: EquipmentUsageRow) -> int:
        if self.total_usage_hours and self.total_usage_hours > 0 and row.usage_hours is not None:
            return round(row.usage_hours / self.total_usage_hours * 100)
        return round(row.allocation_ratio * 100)


def equipment_usage_groups(dataset: Dataset) -> list[EquipmentUsageGroup]:
    """Allocation entries grouped by equipment across all products."""
    equipments = _index(dataset.equipments)
    products = _index(dataset.products)
    groups: dict[str, EquipmentUsageGroup] = {}

    for e in dataset.cost_entries.equipment_allocations:
        eq = equipments.get(e.equipment_id)
        if eq is None:
            continue
        p = products.get(e.product_id)
        unit_cost = annual_equipment_cost(eq) * num(e.allocation_ratio) / max(num(e.annual_quantity) or 1.0, 1.0)

        g = groups.setdefault(eq.id, EquipmentUsageGroup(equipment=eq))
        if e.usage_hours is not None:
            g.total_usage_hours = (g.total_usage_hours or 0.0) + num(e.usage_hours)
        g.entries.append(
            EquipmentUsageRow(
                product_name=p.name if p else UNSET_PRODUCT_NAME,
                allocation_ratio=num(e.allocation_ratio),
                annual_quantity=num(e.annual_quantity),
                usage_hours=e.usage_hours,
                unit_cost=unit_cost,
            )
        )
    return list(groups.values())


DETAIL_CATEGORIES = ("packaging", "labor", "outsourcing", "development", "logistics", "electricity")


def cost_detail_rows(dataset: Dataset, category: str) -> list[dict]:
    """Per-entry rows (product, detail, amount, currency) for the detail tables."""
    products = _index(dataset.products)
    ce = dataset.cost_entries

    def pname(pid: str) -> str:
        p = products.get(pid)
        return p.name if p else UNSET_PRODUCT_NAME

    rows: list[dict] = []
    if category == "packaging":
        items = _index(dataset.packaging_items)
        for e in ce.packaging:
            item = items.get(e.packaging_item_id)
            rows.append({
                "product": pname(e.product_id),
                "detail": f"{item.name if item else '-'} × {e.quantity:g}",
                "amount": num(e.quantity) * num(e.cost_per_unit),
                "currency": e.currency,
            })
    elif category == "labor":
        roles = _index(dataset.labor_roles)
        for e in ce.labor:
            role = roles.get(e.labor_role_id)
            rows.append({
                "product": pname(e.product_id),
                "detail": f"{role.name if role else '-'} / {e.hours:g}h × {e.people_count:g}人",
                "amount": resolve_hourly_rate(e, role) * num(e.hours) * num(e.people_count),
                "currency": role.currency if role else "JPY",
            })
    elif category == "outsourcing":
        for e in ce.outsourcing:
            rows.append({
                "product": pname(e.product_id),
                "detail": e.note or "-",
                "amount": num(e.cost_per_unit),
                "currency": e.currency,
            })
    elif category == "development":
        for e in ce.development:
            quantity = resolve_product_quantity(products.get(e.product_id))
            spend = num(e.prototype_labor_cost) + num(e.prototype_material_cost) + num(e.tooling_cost)
            amortized = spend / max(num(e.amortization_years), 1.0)
            rows.append({
                "product": pname(e.product_id),
                "detail": f"{e.title or '開発コスト'} / {e.amortization_years:g}年 / {quantity:g}個",
                "amount": safe_div(amortized, quantity),
                "currency": "JPY",
            })
    elif category == "logistics":
        methods = _index(dataset.shipping_methods)
        for e in ce.logistics:
            m = methods.get(e.shipping_method_id)
            rows.append({
                "product": pname(e.product_id),
                "detail": m.name if m else UNSET_PRODUCT_NAME,
                "amount": num(e.cost_per_unit),
                "currency": e.currency,
            })
    elif category == "electricity":
        for e in ce.electricity:
            rows.append({
                "product": pname(e.product_id),
                "detail": "基準値",
                "amount": num(e.cost_per_unit),
                "currency": e.currency,
            })
    else:
        raise ValueError(f"Unknown cost category: {category}")
    return rows
