from __future__ import annotations

from costapp.models import (
    Categories,
    CategoryLarge,
    CategoryMedium,
    CategorySmall,
    CostEntries,
    Dataset,
    DevelopmentCostEntry,
    ElectricityCostEntry,
    Equipment,
    EquipmentAllocationEntry,
    ExpectedProduction,
    LaborCostEntry,
    LaborRole,
    LogisticsCostEntry,
    Material,
    MaterialCostEntry,
    OutsourcingCostEntry,
    PackagingCostEntry,
    PackagingItem,
    Product,
    ProductSizeVariant,
    ShippingMethod,
)


def empty_dataset() -> Dataset:
    return Dataset()


def sample_dataset() -> Dataset:
    """A tote-bag maker with one fully costed product; built fresh on every call."""
    return Dataset(
        categories=Categories(
            large=[
                CategoryLarge("cat-l-1", "バッグ", "バッグ系プロダクト"),
                CategoryLarge("cat-l-2", "アクセサリー", "アクセサリー系"),
            ],
            medium=[
                CategoryMedium("cat-m-1", "cat-l-1", "トート", "トートバッグ"),
                CategoryMedium("cat-m-2", "cat-l-1", "ショルダー", "ショルダーバッグ"),
            ],
            small=[CategorySmall("cat-s-1", "cat-m-1", "ミニトート", "小型トート")],
        ),
        materials=[
            Material("mat-1", "キャンバス生地", "m", "50m ロール", "JPY", 320, supplier="FabricMart", note="8号帆布"),
            Material("mat-2", "本革", "㎡", "10㎡ ロット", "JPY", 450, supplier="LeatherWorks", note="タンニンなめし"),
        ],
        packaging_items=[
            PackagingItem("pack-1", "段ボール S", "枚", "320x250x120", 80, "JPY", note="クラフト"),
            PackagingItem("pack-2", "緩衝材", "m", "ロール", 30, "JPY", note="エアキャップ"),
        ],
        shipping_methods=[
            ShippingMethod("ship-1", "宅配便", 180, "JPY", description="一般的な箱発送", note="佐川・ヤマト想定"),
            ShippingMethod("ship-2", "メール便", 120, "JPY", description="ポスト投函", note="小型製品向け"),
        ],
        labor_roles=[
            LaborRole("lab-1", "裁断", 1800, "JPY", note=""),
            LaborRole("lab-2", "縫製", 2200, "JPY", note=""),
        ],
        equipments=[
            Equipment("eq-1", "工業用ミシン", 400000, "JPY", 5, note="平ミシン"),
            Equipment("eq-2", "裁断機", 600000, "JPY", 5, note="自動裁断"),
        ],
        products=[
            Product(
                id="prod-1",
                name="デイリーミニトート",
                registered_at="2024-05-01",
                category_large_id="cat-l-1",
                category_medium_id="cat-m-1",
                category_small_id="cat-s-1",
                size_variants=[ProductSizeVariant("S", 1500), ProductSizeVariant("M", 1500)],
                base_man_hours=1.5,
                default_electricity_cost=25,
                notes="S/Mの2サイズ展開。金具変更や刺繍オプションあり。",
                production_lot_size=50,
                expected_production=ExpectedProduction(period_years=1, quantity=3000),
                equipment_ids=["eq-1", "eq-2"],
            )
        ],
        cost_entries=CostEntries(
            materials=[
                MaterialCostEntry("mat-cost-1", "prod-1", "mat-1", 350, "JPY", description="本体用", usage_ratio=80),
                MaterialCostEntry("mat-cost-2", "prod-1", "mat-2", 180, "JPY", description="持ち手革", usage_ratio=20),
            ],
            packaging=[
                PackagingCostEntry("pack-cost-1", "prod-1", "pack-1", 1, 80, "JPY"),
                PackagingCostEntry("pack-cost-2", "prod-1", "pack-2", 0.5, 30, "JPY"),
            ],
            labor=[
                LaborCostEntry("lab-cost-1", "prod-1", "lab-1", hours=0.4, people_count=1),
                LaborCostEntry("lab-cost-2", "prod-1", "lab-2", hours=0.8, people_count=1),
            ],
            outsourcing=[OutsourcingCostEntry("out-cost-1", "prod-1", 120, "JPY", note="部分仕上げ外注")],
            development=[
                DevelopmentCostEntry(
                    "dev-cost-1",
                    "prod-1",
                    prototype_labor_cost=150000,
                    prototype_material_cost=60000,
                    tooling_cost=40000,
                    amortization_years=2,
                    title="初期試作",
                )
            ],
            equipment_allocations=[
                EquipmentAllocationEntry("eq-alloc-1", "prod-1", "eq-1", 0.5, 3000, usage_hours=0.6),
                EquipmentAllocationEntry("eq-alloc-2", "prod-1", "eq-2", 0.3, 3000, usage_hours=0.4),
            ],
            logistics=[LogisticsCostEntry("log-cost-1", "prod-1", "ship-1", 180, "JPY")],
            electricity=[ElectricityCostEntry("ele-cost-1", "prod-1", 25, "JPY")],
        ),
    )
