from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from costapp.models import (
    CostEntries,
    Dataset,
    DevelopmentCostEntry,
    ElectricityCostEntry,
    EquipmentAllocationEntry,
    ExpectedProduction,
    LaborCostEntry,
    LogisticsCostEntry,
    MaterialCostEntry,
    OutsourcingCostEntry,
    PackagingCostEntry,
    Product,
    ProductSizeVariant,
)
from costapp.utils import iso_today, new_id, num, opt_num

log = logging.getLogger(__name__)

DEFAULT_DEVELOPMENT_TITLE = "開発コスト"


@dataclass
class ProductForm:
    name: str
    category_large_id: Optional[str] = None
    category_medium_id: Optional[str] = None
    category_small_id: Optional[str] = None
    size_variants: list[ProductSizeVariant] = field(default_factory=list)
    base_man_hours: float = 0.0
    registered_at: str = ""
    notes: str = ""
    production_lot_size: float = 1
    period_years: float = 1
    expected_quantity: float = 1
    equipment_ids: list[str] = field(default_factory=list)


# Drafts are the raw rows of the product form, before they become cost entries.


@dataclass
class MaterialDraft:
    material_id: str
    usage_ratio: float = 100
    description: str = ""


@dataclass
class PackagingDraft:
    packaging_item_id: str
    quantity: float = 1


@dataclass
class LaborDraft:
    labor_role_id: str
    hours: float = 0
    people_count: float = 1
    hourly_rate_override: Optional[float] = None


@dataclass
class OutsourcingDraft:
    cost_per_unit: float = 0
    currency: str = "JPY"
    note: str = ""


@dataclass
class DevelopmentDraft:
    title: str = ""
    prototype_labor_cost: float = 0
    prototype_material_cost: float = 0
    tooling_cost: float = 0
    amortization_years: float = 1


@dataclass
class EquipmentDraft:
    equipment_id: str
    allocation_ratio: float = 0.5
    annual_quantity: float = 0
    usage_hours: Optional[float] = None


@dataclass
class LogisticsDraft:
    shipping_method_id: str


@dataclass
class ElectricityDraft:
    cost_per_unit: float = 0
    currency: str = "JPY"


@dataclass
class CostDrafts:
    materials: list[MaterialDraft] = field(default_factory=list)
    packaging: list[PackagingDraft] = field(default_factory=list)
    labor: list[LaborDraft] = field(default_factory=list)
    outsourcing: list[OutsourcingDraft] = field(default_factory=list)
    development: list[DevelopmentDraft] = field(default_factory=list)
    equipment: list[EquipmentDraft] = field(default_factory=list)
    logistics: list[LogisticsDraft] = field(default_factory=list)
    electricity: list[ElectricityDraft] = field(default_factory=list)


def _positive_or_one(v) -> float:
    # Non-positive and non-numeric input both fall back to 1.
    f = num(v)
    return f if f > 0 else 1.0


def normalize_product(form: ProductForm, product_id: str, drafts: CostDrafts) -> Product:
    name = (form.name or "").strip()
    if not name:
        raise ValueError("Product name is required.")

    variants = [
        ProductSizeVariant(label=v.label.strip(), quantity=num(v.quantity))
        for v in form.size_variants
        if (v.label or "").strip()
    ]
    electricity = next((d.cost_per_unit for d in drafts.electricity if num(d.cost_per_unit) > 0), 0)

    return Product(
        id=product_id,
        name=name,
        registered_at=form.registered_at or iso_today(),
        size_variants=variants,
        base_man_hours=num(form.base_man_hours),
        default_electricity_cost=num(electricity),
        production_lot_size=_positive_or_one(form.production_lot_size),
        expected_production=ExpectedProduction(
            period_years=_positive_or_one(form.period_years),
            quantity=_positive_or_one(form.expected_quantity),
        ),
        equipment_ids=list(dict.fromkeys(form.equipment_ids)),
        category_large_id=form.category_large_id or None,
        category_medium_id=form.category_medium_id or None,
        category_small_id=form.category_small_id or None,
        notes=(form.notes or "").strip(),
    )


def build_cost_entries(dataset: Dataset, product: Product, drafts: CostDrafts) -> CostEntries:
    """Turn form drafts into cost entries, resolving prices from the master data."""
    pid = product.id
    out = CostEntries()

    materials = {m.id: m for m in dataset.materials}
    for d in drafts.materials:
        m = materials.get(d.material_id)
        if not d.material_id or m is None:
            continue
        ratio = max(num(d.usage_ratio), 0.0)
        out.materials.append(
            MaterialCostEntry(
                id=new_id(),
                product_id=pid,
                material_id=m.id,
                description=d.description,
                usage_ratio=ratio,
                cost_per_unit=num(m.unit_cost) * (ratio / 100),
                currency=m.currency,
            )
        )

    items = {p.id: p for p in dataset.packaging_items}
    for d in drafts.packaging:
        item = items.get(d.packaging_item_id)
        if item is None:
            continue
        out.packaging.append(
            PackagingCostEntry(
                id=new_id(),
                product_id=pid,
                packaging_item_id=item.id,
                quantity=num(d.quantity),
                cost_per_unit=num(item.unit_cost),
                currency=item.currency,
            )
        )

    for d in drafts.labor:
        if not d.labor_role_id:
            continue
        out.labor.append(
            LaborCostEntry(
                id=new_id(),
                product_id=pid,
                labor_role_id=d.labor_role_id,
                hours=num(d.hours),
                people_count=num(d.people_count),
                hourly_rate_override=opt_num(d.hourly_rate_override),
            )
        )

    for d in drafts.outsourcing:
        if not (d.note or "").strip() and num(d.cost_per_unit) <= 0:
            continue
        out.outsourcing.append(
            OutsourcingCostEntry(
                id=new_id(), product_id=pid, cost_per_unit=num(d.cost_per_unit), currency=d.currency, note=d.note
            )
        )

    for d in drafts.development:
        if max(num(d.prototype_labor_cost), num(d.prototype_material_cost), num(d.tooling_cost)) <= 0:
            continue
        out.development.append(
            DevelopmentCostEntry(
                id=new_id(),
                product_id=pid,
                title=(d.title or "").strip() or DEFAULT_DEVELOPMENT_TITLE,
                prototype_labor_cost=num(d.prototype_labor_cost),
                prototype_material_cost=num(d.prototype_material_cost),
                tooling_cost=num(d.tooling_cost),
                amortization_years=_positive_or_one(d.amortization_years),
            )
        )

    # The stored ratio is rewritten from hours so the summary shows the share actually used.
    hours_total = sum(num(d.usage_hours) for d in drafts.equipment)
    for d in drafts.equipment:
        if not d.equipment_id:
            continue
        hours = num(d.usage_hours)
        ratio = hours / hours_total if hours_total > 0 else num(d.allocation_ratio)
        out.equipment_allocations.append(
            EquipmentAllocationEntry(
                id=new_id(),
                product_id=pid,
                equipment_id=d.equipment_id,
                allocation_ratio=ratio,
                annual_quantity=num(d.annual_quantity) or product.expected_production.quantity,
                usage_hours=hours,
            )
        )

    methods = {s.id: s for s in dataset.shipping_methods}
    for d in drafts.logistics:
        m = methods.get(d.shipping_method_id)
        if m is None:
            continue
        out.logistics.append(
            LogisticsCostEntry(
                id=new_id(),
                product_id=pid,
                shipping_method_id=m.id,
                cost_per_unit=num(m.unit_cost),
                currency=m.currency,
            )
        )

    for d in drafts.electricity:
        if num(d.cost_per_unit) <= 0:
            continue
        out.electricity.append(
            ElectricityCostEntry(id=new_id(), product_id=pid, cost_per_unit=num(d.cost_per_unit), currency=d.currency)
        )

    return out


def _without_product(entries: CostEntries, product_id: str) -> CostEntries:
    return CostEntries(
        materials=[e for e in entries.materials if e.product_id != product_id],
        packaging=[e for e in entries.packaging if e.product_id != product_id],
        labor=[e for e in entries.labor if e.product_id != product_id],
        outsourcing=[e for e in entries.outsourcing if e.product_id != product_id],
        development=[e for e in entries.development if e.product_id != product_id],
        equipment_allocations=[e for e in entries.equipment_allocations if e.product_id != product_id],
        logistics=[e for e in entries.logistics if e.product_id != product_id],
        electricity=[e for e in entries.electricity if e.product_id != product_id],
    )


def _merge(a: CostEntries, b: CostEntries) -> CostEntries:
    return CostEntries(
        materials=a.materials + b.materials,
        packaging=a.packaging + b.packaging,
        labor=a.labor + b.labor,
        outsourcing=a.outsourcing + b.outsourcing,
        development=a.development + b.development,
        equipment_allocations=a.equipment_allocations + b.equipment_allocations,
        logistics=a.logistics + b.logistics,
        electricity=a.electricity + b.electricity,
    )


def remove_product(dataset: Dataset, product_id: str) -> Dataset:
    """Drop a product together with every cost entry that points at it."""
    return replace(
        dataset,
        products=[p for p in dataset.products if p.id != product_id],
        cost_entries=_without_product(dataset.cost_entries, product_id),
    )


def submit_product(
    dataset: Dataset,
    form: ProductForm,
    drafts: CostDrafts,
    *,
    editing_product_id: Optional[str] = None,
) -> Dataset:
    """
    Register a product and its cost-entry batch.

    When editing, the previous product and all of its entries are removed and
    the new batch is inserted under the same id. Returns a new dataset.
    """
    product_id = editing_product_id or new_id()
    product = normalize_product(form, product_id, drafts)

    base = remove_product(dataset, product_id) if editing_product_id else dataset
    batch = build_cost_entries(base, product, drafts)

    log.info(
        "%s product %s (%s) with %d cost entries",
        "Updated" if editing_product_id else "Registered",
        product.name,
        product_id,
        batch.count(),
    )
    return replace(base, products=base.products + [product], cost_entries=_merge(base.cost_entries, batch))


def product_to_form(product: Product) -> ProductForm:
    return ProductForm(
        name=product.name,
        category_large_id=product.category_large_id,
        category_medium_id=product.category_medium_id,
        category_small_id=product.category_small_id,
        size_variants=[ProductSizeVariant(v.label, v.quantity) for v in product.size_variants],
        base_man_hours=product.base_man_hours,
        registered_at=product.registered_at,
        notes=product.notes or "",
        production_lot_size=product.production_lot_size,
        period_years=product.expected_production.period_years,
        expected_quantity=product.expected_production.quantity,
        equipment_ids=list(product.equipment_ids),
    )


def drafts_for_product(dataset: Dataset, product_id: str) -> CostDrafts:
    """Rebuild form drafts from a product's stored entries (for editing)."""
    ce = dataset.cost_entries
    return CostDrafts(
        materials=[
            MaterialDraft(e.material_id, e.usage_ratio or 0, e.description or "")
            for e in ce.materials
            if e.product_id == product_id
        ],
        packaging=[PackagingDraft(e.packaging_item_id, e.quantity) for e in ce.packaging if e.product_id == product_id],
        labor=[
            LaborDraft(e.labor_role_id, e.hours, e.people_count, e.hourly_rate_override)
            for e in ce.labor
            if e.product_id == product_id
        ],
        outsourcing=[
            OutsourcingDraft(e.cost_per_unit, e.currency, e.note or "")
            for e in ce.outsourcing
            if e.product_id == product_id
        ],
        development=[
            DevelopmentDraft(
                e.title or "", e.prototype_labor_cost, e.prototype_material_cost, e.tooling_cost, e.amortization_years
            )
            for e in ce.development
            if e.product_id == product_id
        ],
        equipment=[
            EquipmentDraft(e.equipment_id, e.allocation_ratio, e.annual_quantity, e.usage_hours)
            for e in ce.equipment_allocations
            if e.product_id == product_id
        ],
        logistics=[LogisticsDraft(e.shipping_method_id) for e in ce.logistics if e.product_id == product_id],
        electricity=[ElectricityDraft(e.cost_per_unit, e.currency) for e in ce.electricity if e.product_id == product_id],
    )


def default_equipment_draft(form: ProductForm, equipment_id: str) -> EquipmentDraft:
    """New allocation row when a machine is ticked: base man-hours split across the machines."""
    machines = len(form.equipment_ids) + 1
    hours = num(form.base_man_hours) / machines if num(form.base_man_hours) else 1.0
    return EquipmentDraft(
        equipment_id=equipment_id,
        allocation_ratio=0.5,
        annual_quantity=num(form.expected_quantity) or 1,
        usage_hours=hours,
    )


def rescale_labor_hours(drafts: list[LaborDraft], old_base: float, new_base: float) -> list[LaborDraft]:
    """Labor rows still tracking the base man-hours (or empty) follow a change to it."""
    new_base = num(new_base)
    if num(old_base) == new_base:
        return drafts
    return [
        replace(d, hours=new_base) if num(d.hours) in (num(old_base), 0.0) else d
        for d in drafts
    ]
