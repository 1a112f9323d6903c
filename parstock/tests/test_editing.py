from decimal import Decimal

import pytest
from sqlalchemy import select

from parstock.app.db.models.core_types import EntityKind
from parstock.app.db.models.models_v1 import OnHand, Product, ProductLocation
from parstock.app.schemas.catalog import ProductWrite
from parstock.services import editing
from parstock.services.errors import ConflictError, ReferenceNotFoundError, ValidationError


@pytest.fixture
def catalog(store):
    """Deux locations, un type, un fournisseur."""
    shop = editing.create_entity(store, EntityKind.location, "Shop")
    garage = editing.create_entity(store, EntityKind.location, "Garage")
    paint = editing.create_entity(store, EntityKind.material_type, "Paint")
    acme = editing.create_entity(store, EntityKind.vendor, "Acme")
    return {"shop": shop.id, "garage": garage.id, "paint": paint.id, "acme": acme.id}


def _widget(catalog, **overrides):
    data = {
        "name": "Widget",
        "sku": "w-1",
        "material_type_id": catalog["paint"],
        "vendor_id": catalog["acme"],
        "par": Decimal("5.55"),
        "location_ids": [catalog["shop"]],
    }
    data.update(overrides)
    return ProductWrite(**data)


# ---------- RÉFÉRENTIELS ----------
def test_create_entity_requires_name(store):
    with pytest.raises(ValidationError) as exc:
        editing.create_entity(store, EntityKind.vendor, "   ")
    assert exc.value.as_result() == {"kind": "validation", "message": "Vendor name is required", "field": "name"}


def test_create_entity_duplicate_is_conflict(store, catalog):
    with pytest.raises(ConflictError):
        editing.create_entity(store, EntityKind.location, "Shop")


def test_rename_location(store, catalog):
    loc = editing.rename_entity(store, EntityKind.location, catalog["garage"], "Back room")
    assert loc.name == "Back room"
    with pytest.raises(ConflictError):
        editing.rename_entity(store, EntityKind.location, catalog["garage"], "Shop")
    with pytest.raises(ReferenceNotFoundError):
        editing.rename_entity(store, EntityKind.location, 999, "Nowhere")


def test_delete_vendor_detaches_products(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    editing.delete_entity(store, EntityKind.vendor, catalog["acme"])

    store.db.expire_all()
    p = store.get_product(p.id)
    assert p is not None
    assert p.vendor_id is None
    assert p.material_type_id == catalog["paint"]


def test_delete_location_removes_assignments_and_stock(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    editing.set_on_hand(store, p.id, catalog["shop"], 3)
    editing.delete_entity(store, EntityKind.location, catalog["shop"])

    assert store.db.execute(select(ProductLocation)).all() == []
    assert store.db.execute(select(OnHand)).all() == []
    assert store.get_product(p.id) is not None


def test_delete_unknown_entity(store):
    with pytest.raises(ReferenceNotFoundError):
        editing.delete_entity(store, EntityKind.material_type, 42)


# ---------- PRODUITS ----------
def test_create_product_normalizes(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    assert p.sku == "W-1"
    assert p.par_tenths == 56
    assert store.product_location_ids(p.id) == [catalog["shop"]]


def test_create_product_negative_par_clamped(store, catalog):
    p = editing.create_product(store, _widget(catalog, par=Decimal("-4")))
    assert p.par_tenths == 0


@pytest.mark.parametrize("field", ["name", "sku"])
def test_create_product_requires_name_and_sku(store, catalog, field):
    with pytest.raises(ValidationError) as exc:
        editing.create_product(store, _widget(catalog, **{field: " "}))
    assert exc.value.field == field
    assert store.list_products() == []


def test_create_product_duplicate_sku(store, catalog):
    editing.create_product(store, _widget(catalog))
    with pytest.raises(ConflictError):
        editing.create_product(store, _widget(catalog, sku="W-1 ", name="Other"))


def test_create_product_unknown_reference(store, catalog):
    with pytest.raises(ReferenceNotFoundError) as exc:
        editing.create_product(store, _widget(catalog, vendor_id=999))
    assert exc.value.field == "vendor_id"
    with pytest.raises(ReferenceNotFoundError):
        editing.create_product(store, _widget(catalog, location_ids=[999]))


def test_update_product_replaces_locations(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    p = editing.update_product(
        store,
        p.id,
        _widget(catalog, name="Widget XL", vendor_id=None, location_ids=[catalog["garage"]]),
    )
    assert p.name == "Widget XL"
    assert p.vendor_id is None
    assert store.product_location_ids(p.id) == [catalog["garage"]]


def test_update_product_sku_clash(store, catalog):
    editing.create_product(store, _widget(catalog))
    other = editing.create_product(store, _widget(catalog, sku="W-2", name="Gadget"))
    with pytest.raises(ConflictError):
        editing.update_product(store, other.id, _widget(catalog, sku="w-1", name="Gadget"))


def test_update_unknown_product(store, catalog):
    with pytest.raises(ReferenceNotFoundError):
        editing.update_product(store, 123, _widget(catalog))


def test_delete_product_cascades(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    editing.set_on_hand(store, p.id, catalog["shop"], 1)
    editing.delete_product(store, p.id)

    assert store.db.execute(select(Product)).all() == []
    assert store.db.execute(select(OnHand)).all() == []
    assert store.db.execute(select(ProductLocation)).all() == []


def test_clear_products(store, catalog):
    editing.create_product(store, _widget(catalog))
    editing.create_product(store, _widget(catalog, sku="W-2"))
    assert editing.clear_products(store) == 2
    assert store.list_products() == []
    assert len(store.list_entities(EntityKind.location)) == 2


# ---------- STOCK ----------
def test_set_on_hand_requires_assignment(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    with pytest.raises(ValidationError) as exc:
        editing.set_on_hand(store, p.id, catalog["garage"], 2)
    assert exc.value.field == "location_id"


def test_set_on_hand_rounds_and_upserts(store, catalog):
    p = editing.create_product(store, _widget(catalog))
    assert editing.set_on_hand(store, p.id, catalog["shop"], "2.25") == 23
    assert editing.set_on_hand(store, p.id, catalog["shop"], -1) == 0
    assert store.sum_on_hand_by_product() == {p.id: 0}


def test_list_on_hand_defaults_to_zero(store, catalog):
    a = editing.create_product(store, _widget(catalog, sku="A", name="Brush"))
    editing.create_product(store, _widget(catalog, sku="B", name="Anchor", material_type_id=None))
    editing.create_product(store, _widget(catalog, sku="C", name="Elsewhere", location_ids=[catalog["garage"]]))
    editing.set_on_hand(store, a.id, catalog["shop"], 1.5)

    rows = editing.list_on_hand(store, catalog["shop"])
    by_sku = {r.sku: r for r in rows}
    assert set(by_sku) == {"A", "B"}
    assert by_sku["A"].qty == 1.5
    assert by_sku["A"].material_type_name == "Paint"
    assert by_sku["B"].qty == 0.0
    assert by_sku["B"].updated_at is None


def test_clear_on_hand_by_location(store, catalog):
    p = editing.create_product(store, _widget(catalog, location_ids=[catalog["shop"], catalog["garage"]]))
    editing.set_on_hand(store, p.id, catalog["shop"], 1)
    editing.set_on_hand(store, p.id, catalog["garage"], 2)

    assert editing.clear_on_hand(store, catalog["shop"]) == 1
    assert store.sum_on_hand_by_product() == {p.id: 20}
    assert editing.clear_on_hand(store) == 1
    with pytest.raises(ReferenceNotFoundError):
        editing.clear_on_hand(store, 999)


def test_values_that_do_not_fit_the_columns(store, catalog):
    with pytest.raises(ValidationError) as exc:
        editing.create_entity(store, EntityKind.location, "L" * 201)
    assert exc.value.field == "name"

    with pytest.raises(ValidationError) as exc:
        editing.create_product(store, _widget(catalog, par=Decimal("1e10")))
    assert exc.value.field == "par"

    p = editing.create_product(store, _widget(catalog))
    with pytest.raises(ValidationError) as exc:
        editing.set_on_hand(store, p.id, catalog["shop"], "1e10")
    assert exc.value.field == "qty"
