"""
Saved Response Routes

Pinned queries, dashboard tiles and the export cart.

Endpoints
---------
GET    /api/pins                 - pinned queries, newest first
POST   /api/pins                 - pin a response
DELETE /api/pins/{id}            - unpin
GET    /api/dashboard            - dashboard tiles, newest first
POST   /api/dashboard            - add a response
DELETE /api/dashboard/{id}       - remove a tile
GET    /api/cart                 - cart items, in insertion order
POST   /api/cart                 - add a response
DELETE /api/cart/{id}            - remove an item
DELETE /api/cart                 - empty the cart
GET    /api/cart/export          - plain-text report of the cart
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.app.config import get_settings
from backend.app.engine.export import REPORT_TITLE, build_report
from backend.app.engine.saved_store import (
    Dashboard,
    ExportCart,
    PinnedQueries,
    StorageBackend,
    build_storage,
)
from backend.app.schema.saved_schema import (
    CartExport,
    PinnedQuery,
    SavedResponse,
    SaveResponseRequest,
    SaveResult,
)

logger = logging.getLogger(__name__)

pins_router = APIRouter(prefix="/api/pins", tags=["saved"])
dashboard_router = APIRouter(prefix="/api/dashboard", tags=["saved"])
cart_router = APIRouter(prefix="/api/cart", tags=["saved"])

# Shared storage, created on first use.
_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = build_storage(get_settings())
    return _storage


def get_pins(storage: StorageBackend = Depends(get_storage)) -> PinnedQueries:
    return PinnedQueries(storage)


def get_dashboard(storage: StorageBackend = Depends(get_storage)) -> Dashboard:
    return Dashboard(storage)


def get_cart(storage: StorageBackend = Depends(get_storage)) -> ExportCart:
    return ExportCart(storage)


# Pins

@pins_router.get("", response_model=list[PinnedQuery])
def list_pins(pins: PinnedQueries = Depends(get_pins)) -> list[PinnedQuery]:
    return pins.entries()


@pins_router.post("", response_model=SaveResult)
def pin(request: SaveResponseRequest, pins: PinnedQueries = Depends(get_pins)) -> SaveResult:
    """Pin a response.  ``added`` is false if its query is already pinned."""
    added = pins.add(request.response)
    return SaveResult(id=request.response.id, added=added, count=pins.count())


@pins_router.delete("/{item_id}", status_code=204)
def unpin(item_id: str, pins: PinnedQueries = Depends(get_pins)) -> None:
    if not pins.remove(item_id):
        raise HTTPException(status_code=404, detail=f"Pin '{item_id}' not found.")


# Dashboard

@dashboard_router.get("", response_model=list[SavedResponse])
def list_dashboard(dashboard: Dashboard = Depends(get_dashboard)) -> list[SavedResponse]:
    return dashboard.entries()


@dashboard_router.post("", response_model=SaveResult)
def add_to_dashboard(
    request: SaveResponseRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> SaveResult:
    added = dashboard.add(request.response)
    return SaveResult(id=request.response.id, added=added, count=dashboard.count())


@dashboard_router.delete("/{item_id}", status_code=204)
def remove_from_dashboard(item_id: str, dashboard: Dashboard = Depends(get_dashboard)) -> None:
    if not dashboard.remove(item_id):
        raise HTTPException(status_code=404, detail=f"Dashboard item '{item_id}' not found.")


# Cart

@cart_router.get("", response_model=list[SavedResponse])
def list_cart(cart: ExportCart = Depends(get_cart)) -> list[SavedResponse]:
    return cart.entries()


@cart_router.post("", response_model=SaveResult)
def add_to_cart(request: SaveResponseRequest, cart: ExportCart = Depends(get_cart)) -> SaveResult:
    added = cart.add(request.response)
    return SaveResult(id=request.response.id, added=added, count=cart.count())


@cart_router.get("/export", response_model=CartExport)
def export_cart(cart: ExportCart = Depends(get_cart)) -> CartExport:
    """Render every cart item as a plain-text report."""
    responses = cart.responses()
    try:
        text = build_report(responses)
    except Exception as exc:
        logger.exception("Cart export failed: %s", exc)
        raise HTTPException(status_code=500, detail=f"Export failed: {exc}")
    return CartExport(
        title=REPORT_TITLE,
        count=len(responses),
        text=text,
        organization=get_settings().organization,
    )


@cart_router.delete("/{item_id}", status_code=204)
def remove_from_cart(item_id: str, cart: ExportCart = Depends(get_cart)) -> None:
    if not cart.remove(item_id):
        raise HTTPException(status_code=404, detail=f"Cart item '{item_id}' not found.")


@cart_router.delete("", status_code=204)
def clear_cart(cart: ExportCart = Depends(get_cart)) -> None:
    cart.clear()
