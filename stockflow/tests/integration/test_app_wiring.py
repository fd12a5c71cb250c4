"""Tests for the composition root and foreground refresh wiring."""

from decimal import Decimal

from stockflow.app import build_app
from stockflow.config import Settings
from stockflow.data.collections import SUPPLIERS


def test_staleness_triggers_full_refresh(app, clock):
    app.store.insert(SUPPLIERS, {"name": "Added elsewhere", "created_at": clock()})
    assert app.suppliers.list() == []

    clock.advance(minutes=2)
    assert app.staleness.on_foreground() is False
    assert app.suppliers.list() == []

    clock.advance(minutes=6)
    assert app.staleness.on_foreground() is True
    assert [s.name for s in app.suppliers.list()] == ["Added elsewhere"]
    assert app.cache.last_refreshed == clock()


def test_refresh_writes_snapshot(app, snapshots):
    app.suppliers.add_supplier("Steelworks")
    app.cache.refresh()
    payload = snapshots.get("snapshot")
    assert [r["name"] for r in payload["rows"][SUPPLIERS]] == ["Steelworks"]


def test_services_share_tax_settings(app):
    assert app.purchase_orders.tax_settings.rate_a == Decimal("9")
    assert app.proformas.customers is app.customers


def test_build_app_with_sqlite(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'stock.db'}")
    app = build_app(settings)
    supplier = app.suppliers.add_supplier("Steelworks")
    app.cache.refresh()
    assert [s.id for s in app.suppliers.list()] == [supplier.id]
    assert app.cache.restore_snapshot() is False
    app.session.close()
