"""Inventory endpoints.

Reads are public; every mutation requires a bearer token.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from .auth import CurrentUser, get_current_user
from .deps.services import get_sweet_service
from .schemas import PurchaseIn, RestockIn, SweetCreate, SweetUpdate
from .services import SweetService
from .utils.responses import ok

router = APIRouter(prefix="/api/sweets", tags=["Sweets"])


async def _filtered(
    service: SweetService,
    category: Optional[str],
    name: Optional[str],
    min_price: Optional[Decimal],
    max_price: Optional[Decimal],
) -> dict:
    sweets = await service.list(
        category=category, name=name, min_price=min_price, max_price=max_price
    )
    return ok(sweets)


@router.get("", summary="List sweets")
async def list_sweets(
    category: Optional[str] = Query(None, max_length=255),
    name: Optional[str] = Query(None, max_length=255),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    """Return all sweets, optionally filtered by category, name or price."""

    return await _filtered(service, category, name, min_price, max_price)


@router.get("/search", summary="Search sweets")
async def search_sweets(
    category: Optional[str] = Query(None, max_length=255),
    name: Optional[str] = Query(None, max_length=255),
    min_price: Optional[Decimal] = Query(None, ge=0, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, ge=0, alias="maxPrice"),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    """Search form variant of the list endpoint using camelCase price bounds."""

    return await _filtered(service, category, name, min_price, max_price)


@router.get("/{sweet_id}", summary="Get a sweet")
async def get_sweet(
    sweet_id: int, service: SweetService = Depends(get_sweet_service)
) -> dict:
    return ok(await service.get(sweet_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a sweet")
async def create_sweet(
    payload: SweetCreate,
    user: CurrentUser = Depends(get_current_user),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    return ok(await service.create(payload))


@router.put("/{sweet_id}", summary="Update a sweet")
async def update_sweet(
    sweet_id: int,
    payload: SweetUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    """Apply a partial update; fields left out of the body are unchanged."""

    return ok(await service.update(sweet_id, payload))


@router.delete("/{sweet_id}", summary="Delete a sweet")
async def delete_sweet(
    sweet_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    await service.delete(sweet_id)
    return ok({"id": sweet_id, "deleted": True})


@router.post("/{sweet_id}/restock", summary="Restock a sweet")
async def restock_sweet(
    sweet_id: int,
    payload: RestockIn,
    user: CurrentUser = Depends(get_current_user),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    return ok(await service.restock(sweet_id, payload.amount))


@router.post("/{sweet_id}/purchase", summary="Sell a sweet")
async def purchase_sweet(
    sweet_id: int,
    payload: PurchaseIn,
    user: CurrentUser = Depends(get_current_user),
    service: SweetService = Depends(get_sweet_service),
) -> dict:
    """Decrease stock; responds 409 when not enough units are left."""

    return ok(await service.purchase(sweet_id, payload.quantity))
