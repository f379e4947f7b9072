# storefront/api/deps.py
from fastapi import Request

from storefront.container import Storefront
from storefront.services.cart_service import CartService
from storefront.services.catalog import CatalogService
from storefront.services.order_service import OrderService


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def get_catalog(request: Request) -> CatalogService:
    return get_storefront(request).catalog


def get_cart_service(request: Request) -> CartService:
    return get_storefront(request).cart


def get_order_service(request: Request) -> OrderService:
    return get_storefront(request).orders
