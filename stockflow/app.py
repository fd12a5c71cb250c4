"""Composition root: wires store, caches, pipeline and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from domain.ports import CachePort, StorePort
from stockflow.adapters.outbound.redis_cache import RedisCacheAdapter
from stockflow.adapters.outbound.sqlalchemy_store import SqlAlchemyStore
from stockflow.config import Settings, configure_logging, load_settings
from stockflow.data.client_cache import ClientCache
from stockflow.data.db import get_engine, get_session, init_db
from stockflow.data.mutations import MutationPipeline
from stockflow.data.staleness import StalenessRefreshPolicy
from stockflow.services.customers import CustomerService
from stockflow.services.goods_receipts import GoodsReceiptService
from stockflow.services.inventory import InventoryService
from stockflow.services.products import ProductService
from stockflow.services.proformas import ProformaInvoiceService
from stockflow.services.purchase_orders import PurchaseOrderService
from stockflow.services.suppliers import SupplierService

logger = logging.getLogger(__name__)


@dataclass
class App:
    settings: Settings
    store: StorePort
    cache: ClientCache
    pipeline: MutationPipeline
    staleness: StalenessRefreshPolicy
    inventory: InventoryService
    suppliers: SupplierService
    products: ProductService
    customers: CustomerService
    purchase_orders: PurchaseOrderService
    goods_receipts: GoodsReceiptService
    proformas: ProformaInvoiceService
    session: Session | None = None


def build_services(
    settings: Settings,
    store: StorePort,
    snapshot_cache: CachePort | None = None,
    clock=None,
    session: Session | None = None,
) -> App:
    """Assemble an :class:`App` around an already constructed store."""
    cache = ClientCache(
        store, snapshot_cache=snapshot_cache, clock=clock, snapshot_ttl=settings.snapshot_ttl
    )
    pipeline = MutationPipeline(cache, store)
    args = (cache, pipeline, settings.tax, clock)
    customers = CustomerService(*args)
    return App(
        settings=settings,
        store=store,
        cache=cache,
        pipeline=pipeline,
        staleness=StalenessRefreshPolicy(
            cache.refresh, threshold=settings.stale_after_seconds, clock=cache.clock
        ),
        inventory=InventoryService(*args),
        suppliers=SupplierService(*args),
        products=ProductService(*args),
        customers=customers,
        purchase_orders=PurchaseOrderService(*args),
        goods_receipts=GoodsReceiptService(*args),
        proformas=ProformaInvoiceService(*args, customers=customers),
        session=session,
    )


def build_app(settings: Settings | None = None, refresh: bool = True) -> App:
    """Production wiring: SQLAlchemy store, Redis snapshots when reachable."""
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    engine = get_engine(settings.database_url)
    init_db(engine)
    session = get_session(engine)
    snapshots = RedisCacheAdapter.connect(settings.redis_url, settings.snapshot_ttl)

    app = build_services(settings, SqlAlchemyStore(session), snapshots, session=session)
    if app.cache.restore_snapshot():
        logger.info("Showing cached data until the first refresh completes")
    if refresh:
        app.cache.refresh()
    return app
