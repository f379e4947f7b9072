# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_order_service
from storefront.domain.errors import MutationBusy, NotFound, RemoteFailure, Unauthenticated
from storefront.domain.schemas import CheckoutIn, Order
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=Order, status_code=201)
def checkout(payload: CheckoutIn, svc: OrderService = Depends(get_order_service)):
    """
    Places an order for everything in the cart and empties it.
    """
    try:
        return svc.checkout(payload.shipping_address)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MutationBusy as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/", response_model=List[Order])
def list_orders(svc: OrderService = Depends(get_order_service)):
    try:
        return svc.list_orders()
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: str, svc: OrderService = Depends(get_order_service)):
    try:
        return svc.get_order(order_id)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
