import pandas as pd
import pytest

from parstock.services.csv_source import canonical_header, read_import_csv
from parstock.services.errors import ValidationError
from parstock.services.importer import normalize_rows


def test_headers_are_canonicalized():
    assert canonical_header(" Product ") == "name"
    assert canonical_header("Supplier") == "vendor"
    assert canonical_header("Global PAR") == "par"
    assert canonical_header("On-Hand") == "on_hand"
    assert canonical_header("OnHand") == "on_hand"
    assert canonical_header("Item SKU") == "sku"
    assert canonical_header("loc") == "location"
    assert canonical_header("MaterialType") == "material_type"
    assert canonical_header("Material Category") == "material_type"
    assert canonical_header("material") == "name"
    assert canonical_header("colour") is None


def test_read_from_upload_bytes_keeps_text():
    content = (
        "\ufeffSKU,Product,Type,Supplier,Location,PAR,Qty,Notes\n"
        "s1,Widget,Hardware,Acme,Main,5.5,2,\n"
        "00123,Gasket,,,,1,,NA\n"
    ).encode("utf-8")

    rows = read_import_csv(content)
    assert rows[0] == {
        "sku": "s1",
        "name": "Widget",
        "material_type": "Hardware",
        "vendor": "Acme",
        "location": "Main",
        "par": "5.5",
        "on_hand": "2",
        "notes": "",
    }
    # ni conversion numérique ni NaN
    assert rows[1]["sku"] == "00123"
    assert rows[1]["notes"] == "NA"
    assert rows[1]["on_hand"] == ""


def test_material_column_is_the_product_name():
    rows = read_import_csv(b"sku,material,category\nS1,Steel bolt,Hardware\n")
    assert rows[0]["name"] == "Steel bolt"
    assert rows[0]["material_type"] == "Hardware"


def test_first_non_empty_alias_wins():
    content = b"sku,name,product,qty,on_hand\nS1,,Widget,4,\nS2,Gadget,Other,1,2\n"
    rows = read_import_csv(content)
    assert (rows[0]["name"], rows[0]["on_hand"]) == ("Widget", "4")
    assert (rows[1]["name"], rows[1]["on_hand"]) == ("Gadget", "2")


def test_ragged_line_is_counted_not_fatal():
    content = b"sku,name,par\nS1,Widget,5\nS2,Gadget,3,extra,cells\nS3,Short\n"
    rows = read_import_csv(content)

    assert len(rows) == 3
    accepted = normalize_rows(rows)
    assert [(r.sku, r.par_tenths) for r in accepted] == [("S1", 50), ("S3", 0)]


def test_latin1_export_is_decoded():
    rows = read_import_csv("sku,name\nS1,Café\n".encode("latin-1"))
    assert rows[0]["name"] == "Café"


def test_unreadable_csv_is_a_validation_error(monkeypatch):
    def broken(*args, **kwargs):
        raise pd.errors.ParserError("Error tokenizing data")

    monkeypatch.setattr(pd, "read_csv", broken)
    with pytest.raises(ValidationError) as exc:
        read_import_csv(b"sku,name\nS1,Widget\n")
    assert exc.value.field == "file"


def test_read_from_path(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text("sku,name,on_hand\nS1,Widget,3\n,Nameless,1\n", encoding="utf-8")

    rows = normalize_rows(read_import_csv(str(path)))
    assert [(r.sku, r.on_hand_tenths) for r in rows] == [("S1", 30)]


def test_empty_file_gives_no_rows():
    assert read_import_csv(b"") == []
    assert read_import_csv(b"sku,name\n") == []
