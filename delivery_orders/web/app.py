"""FastAPI-based web interface for the order desk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.templating import Jinja2Templates

from ..config import Settings
from ..domain import Product, Store
from ..errors import (
    ConflictPending,
    LoadFailure,
    NothingToSyncError,
    NotStagedError,
    SyncFailure,
    SyncInProgressError,
    ValidationError,
)
from ..remote import HttpRemote, InMemoryRemote, RemoteBackend
from ..repository import DuplicateRecordError, RecordNotFoundError
from ..sample_usage import demo_snapshot
from ..services import OrderDeskService
from .schemas import OrderIn, ProductIn, StoreIn

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def build_remote(settings: Settings) -> RemoteBackend:
    if settings.uses_remote:
        return HttpRemote(settings.remote_url, timeout=settings.request_timeout)
    logger.info("No remote URL configured, serving demo data from memory")
    return InMemoryRemote(demo_snapshot())


def create_app(
    settings: Optional[Settings] = None, remote: Optional[RemoteBackend] = None
) -> FastAPI:
    settings = settings or Settings.from_env()
    service = OrderDeskService(
        remote or build_remote(settings),
        default_delivery_time=settings.default_delivery_time,
    )
    try:
        service.refresh()
    except LoadFailure as exc:
        logger.warning("Starting without remote data: %s", exc)

    app = FastAPI(title="Delivery Order Desk")
    app.state.order_desk = service
    app.state.settings = settings

    @app.get("/")
    async def dashboard(request: Request):
        service: OrderDeskService = request.app.state.order_desk
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "orders": order_rows(service),
                "summary": service.production_summary(),
                "stores": service.stores.list(),
                "staged_count": len(service.book.local_orders),
            },
        )

    @app.get("/api/orders")
    def list_orders(request: Request):
        service: OrderDeskService = request.app.state.order_desk
        return {
            "orders": order_rows(service),
            "staged": len(service.book.local_orders),
            "syncing": service.book.busy,
        }

    @app.get("/api/stores/eligible")
    def list_eligible_stores(request: Request, date: str):
        service: OrderDeskService = request.app.state.order_desk
        try:
            stores = service.eligible_stores(date)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"date": date, "stores": [store.to_payload() for store in stores]}

    @app.get("/api/stores/{store_name}/defaults")
    def get_store_defaults(store_name: str, request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            defaults = service.store_defaults(store_name)
        except RecordNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {
            "storeName": defaults.store_name,
            "deliveryTime": defaults.delivery_time,
            "rows": [
                {"itemName": line.item_name, "quantity": line.quantity}
                for line in defaults.lines
            ],
        }

    @app.post("/api/orders/check")
    def check_order(payload: OrderIn, request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            draft = service.prepare_order(
                payload.date,
                payload.storeName,
                payload.deliveryTime,
                [row.model_dump() for row in payload.rows],
            )
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {
            "date": draft.date,
            "storeName": draft.store_name,
            "deliveryTime": draft.delivery_time,
            "rows": [
                {"itemName": line.item_name, "quantity": line.quantity}
                for line in draft.lines
            ],
            "conflicts": draft.warning.item_names if draft.warning else [],
        }

    @app.post("/api/orders", status_code=201)
    def submit_order(payload: OrderIn, request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            staged = service.place_order(
                payload.date,
                payload.storeName,
                payload.deliveryTime,
                [row.model_dump() for row in payload.rows],
                override=payload.override,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except ConflictPending as exc:
            raise HTTPException(
                status_code=409,
                detail={
                    "message": str(exc),
                    "conflicts": exc.warning.item_names,
                },
            ) from exc
        return {
            "admitted": [
                dict(entry.order.to_payload(), handle=entry.handle) for entry in staged
            ]
        }

    @app.delete("/api/orders/staged/{handle}")
    def discard_order(handle: str, request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            service.discard_order(handle)
        except NotStagedError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"status": "ok", "staged": len(service.book.local_orders)}

    @app.post("/api/sync/orders")
    def sync_orders(request: Request):
        service: OrderDeskService = request.app.state.order_desk
        staged = len(service.book.local_orders)
        try:
            service.sync_orders()
        except NothingToSyncError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except SyncInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except (SyncFailure, LoadFailure) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"status": "ok", "uploaded": staged}

    @app.post("/api/refresh")
    def refresh(request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            service.refresh()
        except SyncInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except LoadFailure as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"status": "ok", "orders": len(service.book.all_orders)}

    @app.get("/api/summary")
    def summary(request: Request):
        service: OrderDeskService = request.app.state.order_desk
        return {
            "totals": service.totals(),
            "days": [
                {
                    "date": day.date,
                    "items": [
                        {"itemName": line.item_name, "quantity": line.quantity, "unit": line.unit}
                        for line in day.lines
                    ],
                }
                for day in service.production_summary()
            ],
        }

    @app.put("/api/stores")
    def replace_stores(payload: List[StoreIn], request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            stores = [Store.from_payload(item.model_dump()) for item in payload]
            service.save_stores(stores)
        except (ValidationError, DuplicateRecordError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except SyncInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except (SyncFailure, LoadFailure) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"status": "ok", "stores": len(service.stores)}

    @app.put("/api/products")
    def replace_products(payload: List[ProductIn], request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            products = [Product.from_payload(item.model_dump()) for item in payload]
            service.save_products(products)
        except (ValidationError, DuplicateRecordError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except SyncInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except (SyncFailure, LoadFailure) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"status": "ok", "products": len(service.products)}

    @app.post("/api/stores/{store_name}/holidays/{day}")
    def toggle_holiday(store_name: str, day: str, request: Request):
        service: OrderDeskService = request.app.state.order_desk
        try:
            store = service.toggle_holiday(store_name, day)
        except RecordNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return store.to_payload()

    return app


def order_rows(service: OrderDeskService) -> List[Dict[str, Any]]:
    """Orders in preview order; staged ones carry their discard handle."""

    handles = {id(entry.order): entry.handle for entry in service.book.staged}
    rows: List[Dict[str, Any]] = []
    for order in service.orders_for_preview():
        row = order.to_payload()
        row["unit"] = service.unit_for(order.item_name)
        handle = handles.get(id(order))
        if handle is not None:
            row["handle"] = handle
        rows.append(row)
    return rows
