import json

from parstock.app.db import import_csv


def test_cli_dry_run_then_import(tmp_path, monkeypatch, capsys, store):
    path = tmp_path / "catalog.csv"
    path.write_text("sku,name,location,par,on_hand\nS1,Widget,Main,5.5,2\n", encoding="utf-8")
    monkeypatch.setattr(import_csv, "SessionLocal", lambda: store.db)

    assert import_csv.main([str(path), "--dry-run"]) == 0
    preview = json.loads(capsys.readouterr().out)
    assert preview["dry_run"] is True
    assert preview["products_inserted"] == 1
    assert store.list_products() == []

    assert import_csv.main([str(path), "--mode", "skip"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["dedup_mode"] == "skip"
    assert summary["on_hand_upserts"] == 1
    assert [p.sku for p in store.list_products()] == ["S1"]


def test_cli_unreadable_file_exits_non_zero(tmp_path, monkeypatch, capsys, store):
    import pandas as pd

    def broken(*args, **kwargs):
        raise pd.errors.ParserError("Error tokenizing data")

    path = tmp_path / "catalog.csv"
    path.write_text("sku,name\nS1,Widget\n", encoding="utf-8")
    monkeypatch.setattr(pd, "read_csv", broken)
    monkeypatch.setattr(import_csv, "SessionLocal", lambda: store.db)

    assert import_csv.main([str(path)]) == 2
    assert json.loads(capsys.readouterr().out)["field"] == "file"
    assert store.list_products() == []
