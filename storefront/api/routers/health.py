from fastapi import APIRouter, Depends

from storefront.api.deps import get_storefront
from storefront.container import Storefront

router = APIRouter(tags=["health"])


@router.get("/health")
def health(storefront: Storefront = Depends(get_storefront)):
    return {
        "status": "ok",
        "backend": storefront.backend,
        "catalog_loaded": storefront.catalog.loaded,
        "cart_state": storefront.cart.state.value,
    }
