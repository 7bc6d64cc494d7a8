from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Optional

from costapp.utils import num, opt_num, at_least_one


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


def _str(v: Any, default: str = "") -> str:
    return default if v is None else str(v)


def _opt_str(v: Any) -> Optional[str]:
    return None if v is None else str(v)


def to_dict(obj: Any) -> Any:
    """Serialise a record tree to the camelCase JSON layout; None fields are omitted."""
    if is_dataclass(obj):
        out = {}
        for f in fields(obj):
            v = getattr(obj, f.name)
            if v is None:
                continue
            out[_camel(f.name)] = to_dict(v)
        return out
    if isinstance(obj, list):
        return [to_dict(v) for v in obj]
    return obj


def _obj(d: dict, key: str) -> dict:
    v = d.get(key)
    return v if isinstance(v, dict) else {}


def _items(d: dict, key: str) -> list:
    v = d.get(key)
    return [r for r in v if isinstance(r, dict)] if isinstance(v, list) else []


def _ids(v: Any) -> list[str]:
    return [str(i) for i in v if i is not None] if isinstance(v, list) else []


# ---- master data ----


@dataclass
class CategoryLarge:
    id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "CategoryLarge":
        return cls(id=_str(d.get("id")), name=_str(d.get("name")), description=_opt_str(d.get("description")))


@dataclass
class CategoryMedium:
    id: str
    large_id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "CategoryMedium":
        return cls(
            id=_str(d.get("id")),
            large_id=_str(d.get("largeId")),
            name=_str(d.get("name")),
            description=_opt_str(d.get("description")),
        )


@dataclass
class CategorySmall:
    id: str
    medium_id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "CategorySmall":
        return cls(
            id=_str(d.get("id")),
            medium_id=_str(d.get("mediumId")),
            name=_str(d.get("name")),
            description=_opt_str(d.get("description")),
        )


@dataclass
class Categories:
    large: list[CategoryLarge] = field(default_factory=list)
    medium: list[CategoryMedium] = field(default_factory=list)
    small: list[CategorySmall] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "Categories":
        return cls(
            large=[CategoryLarge.from_dict(r) for r in _items(d, "large")],
            medium=[CategoryMedium.from_dict(r) for r in _items(d, "medium")],
            small=[CategorySmall.from_dict(r) for r in _items(d, "small")],
        )


@dataclass
class Material:
    id: str
    name: str
    unit: str
    size_description: str
    currency: str
    unit_cost: float
    supplier: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Material":
        return cls(
            id=_str(d.get("id")),
            name=_str(d.get("name")),
            unit=_str(d.get("unit")),
            size_description=_str(d.get("sizeDescription")),
            currency=_str(d.get("currency"), "JPY"),
            unit_cost=num(d.get("unitCost")),
            supplier=_opt_str(d.get("supplier")),
            note=_opt_str(d.get("note")),
        )


@dataclass
class PackagingItem:
    id: str
    name: str
    unit: str
    size_description: str
    unit_cost: float
    currency: str
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "PackagingItem":
        return cls(
            id=_str(d.get("id")),
            name=_str(d.get("name")),
            unit=_str(d.get("unit")),
            size_description=_str(d.get("sizeDescription")),
            unit_cost=num(d.get("unitCost")),
            currency=_str(d.get("currency"), "JPY"),
            note=_opt_str(d.get("note")),
        )


@dataclass
class ShippingMethod:
    id: str
    name: str
    unit_cost: float
    currency: str
    description: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "ShippingMethod":
        return cls(
            id=_str(d.get("id")),
            name=_str(d.get("name")),
            unit_cost=num(d.get("unitCost")),
            currency=_str(d.get("currency"), "JPY"),
            description=_opt_str(d.get("description")),
            note=_opt_str(d.get("note")),
        )


@dataclass
class LaborRole:
    id: str
    name: str
    hourly_rate: float
    currency: str
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "LaborRole":
        return cls(
            id=_str(d.get("id")),
            name=_str(d.get("name")),
            hourly_rate=num(d.get("hourlyRate")),
            currency=_str(d.get("currency"), "JPY"),
            note=_opt_str(d.get("note")),
        )


@dataclass
class Equipment:
    id: str
    name: str
    acquisition_cost: float
    currency: str
    amortization_years: float
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Equipment":
        return cls(
            id=_str(d.get("id")),
            name=_str(d.get("name")),
            acquisition_cost=num(d.get("acquisitionCost")),
            currency=_str(d.get("currency"), "JPY"),
            amortization_years=num(d.get("amortizationYears"), 1.0),
            note=_opt_str(d.get("note")),
        )


# ---- products ----


@dataclass
class ProductSizeVariant:
    label: str
    quantity: float

    @classmethod
    def from_dict(cls, d: dict) -> "ProductSizeVariant":
        return cls(label=_str(d.get("label")), quantity=num(d.get("quantity")))


@dataclass
class ExpectedProduction:
    period_years: float = 1
    quantity: float = 1

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> "ExpectedProduction":
        d = d if isinstance(d, dict) else {}
        # Both values are used as divisors.
        return cls(period_years=at_least_one(d.get("periodYears")), quantity=at_least_one(d.get("quantity")))


@dataclass
class Product:
    id: str
    name: str
    registered_at: str
    size_variants: list[ProductSizeVariant] = field(default_factory=list)
    base_man_hours: float = 0.0
    default_electricity_cost: float = 0.0
    production_lot_size: float = 1
    expected_production: ExpectedProduction = field(default_factory=ExpectedProduction)
    equipment_ids: list[str] = field(default_factory=list)
    category_large_id: Optional[str] = None
    category_medium_id: Optional[str] = None
    category_small_id: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Product":
        return cls(
            id=_str(d.get("id")),
            name=_str(d.get("name")),
            registered_at=_str(d.get("registeredAt")),
            size_variants=[ProductSizeVariant.from_dict(r) for r in _items(d, "sizeVariants")],
            base_man_hours=num(d.get("baseManHours")),
            default_electricity_cost=num(d.get("defaultElectricityCost")),
            production_lot_size=num(d.get("productionLotSize"), 1.0),
            expected_production=ExpectedProduction.from_dict(d.get("expectedProduction")),
            equipment_ids=_ids(d.get("equipmentIds")),
            category_large_id=_opt_str(d.get("categoryLargeId")),
            category_medium_id=_opt_str(d.get("categoryMediumId")),
            category_small_id=_opt_str(d.get("categorySmallId")),
            notes=_opt_str(d.get("notes")),
        )


# ---- cost entries (one product each) ----


@dataclass
class MaterialCostEntry:
    id: str
    product_id: str
    material_id: str
    cost_per_unit: float
    currency: str
    description: Optional[str] = None
    usage_ratio: Optional[float] = None  # percent of the material lot used by one unit

    @classmethod
    def from_dict(cls, d: dict) -> "MaterialCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            material_id=_str(d.get("materialId")),
            cost_per_unit=num(d.get("costPerUnit")),
            currency=_str(d.get("currency"), "JPY"),
            description=_opt_str(d.get("description")),
            usage_ratio=opt_num(d.get("usageRatio")),
        )


@dataclass
class PackagingCostEntry:
    id: str
    product_id: str
    packaging_item_id: str
    quantity: float
    cost_per_unit: float
    currency: str

    @classmethod
    def from_dict(cls, d: dict) -> "PackagingCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            packaging_item_id=_str(d.get("packagingItemId")),
            quantity=num(d.get("quantity")),
            cost_per_unit=num(d.get("costPerUnit")),
            currency=_str(d.get("currency"), "JPY"),
        )


@dataclass
class LaborCostEntry:
    id: str
    product_id: str
    labor_role_id: str
    hours: float
    people_count: float
    hourly_rate_override: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> "LaborCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            labor_role_id=_str(d.get("laborRoleId")),
            hours=num(d.get("hours")),
            people_count=num(d.get("peopleCount")),
            hourly_rate_override=opt_num(d.get("hourlyRateOverride")),
        )


@dataclass
class OutsourcingCostEntry:
    id: str
    product_id: str
    cost_per_unit: float
    currency: str
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "OutsourcingCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            cost_per_unit=num(d.get("costPerUnit")),
            currency=_str(d.get("currency"), "JPY"),
            note=_opt_str(d.get("note")),
        )


@dataclass
class DevelopmentCostEntry:
    id: str
    product_id: str
    prototype_labor_cost: float
    prototype_material_cost: float
    tooling_cost: float
    amortization_years: float
    title: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "DevelopmentCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            prototype_labor_cost=num(d.get("prototypeLaborCost")),
            prototype_material_cost=num(d.get("prototypeMaterialCost")),
            tooling_cost=num(d.get("toolingCost")),
            amortization_years=num(d.get("amortizationYears"), 1.0),
            title=_opt_str(d.get("title")),
        )


@dataclass
class EquipmentAllocationEntry:
    id: str
    product_id: str
    equipment_id: str
    allocation_ratio: float  # 0-1, used when usage hours are unknown
    annual_quantity: float
    usage_hours: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> "EquipmentAllocationEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            equipment_id=_str(d.get("equipmentId")),
            allocation_ratio=num(d.get("allocationRatio")),
            annual_quantity=num(d.get("annualQuantity")),
            usage_hours=opt_num(d.get("usageHours")),
        )


@dataclass
class LogisticsCostEntry:
    id: str
    product_id: str
    shipping_method_id: str
    cost_per_unit: float
    currency: str

    @classmethod
    def from_dict(cls, d: dict) -> "LogisticsCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            shipping_method_id=_str(d.get("shippingMethodId")),
            cost_per_unit=num(d.get("costPerUnit")),
            currency=_str(d.get("currency"), "JPY"),
        )


@dataclass
class ElectricityCostEntry:
    id: str
    product_id: str
    cost_per_unit: float
    currency: str

    @classmethod
    def from_dict(cls, d: dict) -> "ElectricityCostEntry":
        return cls(
            id=_str(d.get("id")),
            product_id=_str(d.get("productId")),
            cost_per_unit=num(d.get("costPerUnit")),
            currency=_str(d.get("currency"), "JPY"),
        )


@dataclass
class CostEntries:
    materials: list[MaterialCostEntry] = field(default_factory=list)
    packaging: list[PackagingCostEntry] = field(default_factory=list)
    labor: list[LaborCostEntry] = field(default_factory=list)
    outsourcing: list[OutsourcingCostEntry] = field(default_factory=list)
    development: list[DevelopmentCostEntry] = field(default_factory=list)
    equipment_allocations: list[EquipmentAllocationEntry] = field(default_factory=list)
    logistics: list[LogisticsCostEntry] = field(default_factory=list)
    electricity: list[ElectricityCostEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "CostEntries":
        return cls(
            materials=[MaterialCostEntry.from_dict(r) for r in _items(d, "materials")],
            packaging=[PackagingCostEntry.from_dict(r) for r in _items(d, "packaging")],
            labor=[LaborCostEntry.from_dict(r) for r in _items(d, "labor")],
            outsourcing=[OutsourcingCostEntry.from_dict(r) for r in _items(d, "outsourcing")],
            development=[DevelopmentCostEntry.from_dict(r) for r in _items(d, "development")],
            equipment_allocations=[
                EquipmentAllocationEntry.from_dict(r) for r in _items(d, "equipmentAllocations")
            ],
            logistics=[LogisticsCostEntry.from_dict(r) for r in _items(d, "logistics")],
            electricity=[ElectricityCostEntry.from_dict(r) for r in _items(d, "electricity")],
        )

    def count(self) -> int:
        return sum(len(getattr(self, f.name)) for f in fields(self))


@dataclass
class Dataset:
    """The whole application state; persisted as one JSON document."""

    categories: Categories = field(default_factory=Categories)
    materials: list[Material] = field(default_factory=list)
    packaging_items: list[PackagingItem] = field(default_factory=list)
    shipping_methods: list[ShippingMethod] = field(default_factory=list)
    labor_roles: list[LaborRole] = field(default_factory=list)
    equipments: list[Equipment] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    cost_entries: CostEntries = field(default_factory=CostEntries)

    @classmethod
    def from_dict(cls, d: dict) -> "Dataset":
        if not isinstance(d, dict):
            raise ValueError("Snapshot must be a JSON object.")
        return cls(
            categories=Categories.from_dict(_obj(d, "categories")),
            materials=[Material.from_dict(r) for r in _items(d, "materials")],
            packaging_items=[PackagingItem.from_dict(r) for r in _items(d, "packagingItems")],
            shipping_methods=[ShippingMethod.from_dict(r) for r in _items(d, "shippingMethods")],
            labor_roles=[LaborRole.from_dict(r) for r in _items(d, "laborRoles")],
            equipments=[Equipment.from_dict(r) for r in _items(d, "equipments")],
            products=[Product.from_dict(r) for r in _items(d, "products")],
            cost_entries=CostEntries.from_dict(_obj(d, "costEntries")),
        )

    def to_dict(self) -> dict:
        return to_dict(self)

    def master_count(self) -> int:
        return len(self.materials) + len(self.packaging_items) + len(self.labor_roles) + len(self.equipments)
