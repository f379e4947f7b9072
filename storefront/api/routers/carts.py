# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_cart_service, get_catalog
from storefront.domain.errors import Unauthenticated
from storefront.domain.schemas import AddItemIn, CartOut, QuantityIn
from storefront.services.cart_service import CartService
from storefront.services.catalog import CatalogService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/", response_model=CartOut)
def get_cart(svc: CartService = Depends(get_cart_service)):
    return svc.get_cart()


@router.post("/items", response_model=CartOut)
def add_item(
    payload: AddItemIn,
    svc: CartService = Depends(get_cart_service),
    catalog: CatalogService = Depends(get_catalog),
):
    product = catalog.get(payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        return svc.add_to_cart(product)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: str,
    payload: QuantityIn,
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.update_quantity(item_id, payload.quantity)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(item_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.remove_from_cart(item_id)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.delete("/", response_model=CartOut)
def clear_cart(svc: CartService = Depends(get_cart_service)):
    try:
        return svc.clear_cart()
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
