"""
test_products.py: product submission, editing and removal.
"""

import copy

import pytest

from costapp.models import ProductSizeVariant
from costapp.services.costing import compute_unit_cost
from costapp.services.products import (
    CostDrafts,
    DevelopmentDraft,
    ElectricityDraft,
    EquipmentDraft,
    LaborDraft,
    LogisticsDraft,
    MaterialDraft,
    OutsourcingDraft,
    PackagingDraft,
    ProductForm,
    default_equipment_draft,
    drafts_for_product,
    product_to_form,
    remove_product,
    rescale_labor_hours,
    submit_product,
)


def _entries_for(ds, pid):
    ce = ds.cost_entries
    return {
        "materials": [e for e in ce.materials if e.product_id == pid],
        "packaging": [e for e in ce.packaging if e.product_id == pid],
        "labor": [e for e in ce.labor if e.product_id == pid],
        "outsourcing": [e for e in ce.outsourcing if e.product_id == pid],
        "development": [e for e in ce.development if e.product_id == pid],
        "equipment": [e for e in ce.equipment_allocations if e.product_id == pid],
        "logistics": [e for e in ce.logistics if e.product_id == pid],
        "electricity": [e for e in ce.electricity if e.product_id == pid],
    }


@pytest.fixture
def form():
    return ProductForm(
        name="  ショルダーS  ",
        size_variants=[ProductSizeVariant(" S ", 10), ProductSizeVariant("  ", 5)],
        base_man_hours=2,
        registered_at="2024-06-01",
        production_lot_size=0,
        period_years=-1,
        expected_quantity=500,
    )


@pytest.fixture
def drafts():
    return CostDrafts(
        materials=[MaterialDraft("mat-1", 50), MaterialDraft("", 20), MaterialDraft("missing", 20)],
        packaging=[PackagingDraft("pack-1", 2)],
        labor=[LaborDraft("lab-2", 0.5, 2), LaborDraft("", 1, 1)],
        outsourcing=[OutsourcingDraft(0, "JPY", ""), OutsourcingDraft(0, "JPY", "刺繍"), OutsourcingDraft(90)],
        development=[DevelopmentDraft("", 0, 0, 0), DevelopmentDraft("", 10000, 0, 0, 0)],
        equipment=[EquipmentDraft("eq-1", 0.9, 0, 1.0), EquipmentDraft("eq-2", 0.9, 250, 3.0)],
        logistics=[LogisticsDraft("ship-2"), LogisticsDraft("missing")],
        electricity=[ElectricityDraft(0), ElectricityDraft(12)],
    )


class TestSubmitNew:

    def test_product_is_normalized(self, sample, form, drafts):
        ds = submit_product(sample, form, drafts)
        p = ds.products[-1]
        assert p.name == "ショルダーS"
        assert [v.label for v in p.size_variants] == ["S"]
        assert p.production_lot_size == 1
        assert p.expected_production.period_years == 1
        assert p.expected_production.quantity == 500
        assert p.default_electricity_cost == 12

    def test_input_dataset_untouched(self, sample, form, drafts):
        before = copy.deepcopy(sample)
        submit_product(sample, form, drafts)
        assert sample == before

    def test_material_cost_derived_from_ratio(self, sample, form, drafts):
        ds = submit_product(sample, form, drafts)
        mats = _entries_for(ds, ds.products[-1].id)["materials"]
        assert len(mats) == 1
        # 320 x 50 / 100
        assert mats[0].cost_per_unit == pytest.approx(160)
        assert mats[0].usage_ratio == 50

    def test_negative_ratio_clamped(self, sample, form):
        ds = submit_product(sample, form, CostDrafts(materials=[MaterialDraft("mat-1", -30)]))
        assert ds.cost_entries.materials[-1].cost_per_unit == 0

    def test_entry_filters(self, sample, form, drafts):
        ds = submit_product(sample, form, drafts)
        e = _entries_for(ds, ds.products[-1].id)
        assert len(e["packaging"]) == 1 and e["packaging"][0].cost_per_unit == 80
        assert len(e["labor"]) == 1
        assert [o.note for o in e["outsourcing"]] == ["刺繍", ""]
        assert len(e["development"]) == 1
        assert e["development"][0].title == "開発コスト"
        assert e["development"][0].amortization_years == 1
        assert [l.shipping_method_id for l in e["logistics"]] == ["ship-2"]
        assert [x.cost_per_unit for x in e["electricity"]] == [12]

    def test_equipment_ratio_rewritten_from_hours(self, sample, form, drafts):
        ds = submit_product(sample, form, drafts)
        eq = _entries_for(ds, ds.products[-1].id)["equipment"]
        assert [a.allocation_ratio for a in eq] == pytest.approx([0.25, 0.75])
        assert eq[0].annual_quantity == 500
        assert eq[1].annual_quantity == 250

    def test_equipment_ratio_kept_without_hours(self, sample, form):
        d = CostDrafts(equipment=[EquipmentDraft("eq-1", 0.4, 100, None)])
        ds = submit_product(sample, form, d)
        a = ds.cost_entries.equipment_allocations[-1]
        assert a.allocation_ratio == pytest.approx(0.4)
        assert a.usage_hours == 0

    def test_unit_cost_of_new_product(self, sample, form, drafts):
        ds = submit_product(sample, form, drafts)
        c = compute_unit_cost(ds.products[-1].id, ds)
        assert c.material == pytest.approx(160)
        assert c.packaging == pytest.approx(160)
        assert c.labor == pytest.approx(2200 * 0.5 * 2)
        assert c.outsourcing == pytest.approx(90)
        assert c.development == pytest.approx(10000 / 500)
        assert c.logistics == pytest.approx(120)
        assert c.electricity == pytest.approx(12)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, sample, name):
        with pytest.raises(ValueError):
            submit_product(sample, ProductForm(name=name), CostDrafts())

    def test_registered_at_defaults_to_today(self, sample):
        ds = submit_product(sample, ProductForm(name="x"), CostDrafts())
        assert len(ds.products[-1].registered_at) == 10


class TestEditAndRemove:

    def test_edit_replaces_batch(self, sample):
        form = product_to_form(sample.products[0])
        drafts = drafts_for_product(sample, "prod-1")
        drafts.materials = drafts.materials[:1]
        ds = submit_product(sample, form, drafts, editing_product_id="prod-1")

        assert [p.id for p in ds.products] == ["prod-1"]
        e = _entries_for(ds, "prod-1")
        assert len(e["materials"]) == 1
        assert len(e["labor"]) == 2
        # 320 x 80%
        assert compute_unit_cost("prod-1", ds).material == pytest.approx(256)

    def test_edit_roundtrip_keeps_most_totals(self, sample):
        ds = submit_product(
            sample,
            product_to_form(sample.products[0]),
            drafts_for_product(sample, "prod-1"),
            editing_product_id="prod-1",
        )
        before = compute_unit_cost("prod-1", sample)
        after = compute_unit_cost("prod-1", ds)
        for name in ["packaging", "labor", "outsourcing", "development", "equipment", "logistics", "electricity"]:
            assert getattr(after, name) == pytest.approx(getattr(before, name))

    def test_edit_keeps_fractional_production_values(self, sample):
        ds = copy.deepcopy(sample)
        p = ds.products[0]
        p.expected_production.quantity = 2.5
        p.expected_production.period_years = 1.5
        p.production_lot_size = 12.5

        form = product_to_form(p)
        assert form.expected_quantity == 2.5
        out = submit_product(ds, form, drafts_for_product(ds, "prod-1"), editing_product_id="prod-1")
        again = out.products[0]
        assert again.expected_production.quantity == 2.5
        assert again.expected_production.period_years == 1.5
        assert again.production_lot_size == 12.5

    def test_remove_cascades(self, sample):
        ds = remove_product(sample, "prod-1")
        assert ds.products == []
        assert ds.cost_entries.count() == 0
        assert ds.materials == sample.materials

    def test_remove_unknown_is_noop(self, sample):
        assert remove_product(sample, "nope") == sample


class TestFormHelpers:

    def test_default_equipment_draft_splits_hours(self):
        form = ProductForm(name="x", base_man_hours=3, expected_quantity=200, equipment_ids=["eq-1", "eq-2"])
        d = default_equipment_draft(form, "eq-3")
        assert d.usage_hours == pytest.approx(1)
        assert d.annual_quantity == 200
        assert d.allocation_ratio == 0.5

    def test_default_equipment_draft_without_hours(self):
        d = default_equipment_draft(ProductForm(name="x"), "eq-1")
        assert d.usage_hours == 1

    def test_rescale_labor_hours(self):
        drafts = [LaborDraft("a", 1.5), LaborDraft("b", 0), LaborDraft("c", 0.7)]
        out = rescale_labor_hours(drafts, 1.5, 2.0)
        assert [d.hours for d in out] == [2.0, 2.0, 0.7]

    def test_rescale_noop_when_unchanged(self):
        drafts = [LaborDraft("a", 1.5)]
        assert rescale_labor_hours(drafts, 1.5, 1.5) is drafts
