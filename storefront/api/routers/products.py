# storefront/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_catalog
from storefront.domain.schemas import Product
from storefront.services.catalog import ALL_CATEGORIES, CATEGORIES, CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[Product])
def list_products(
    category: str = Query(ALL_CATEGORIES),
    q: str = Query(""),
    catalog: CatalogService = Depends(get_catalog),
):
    return catalog.visible(category, q)


@router.get("/categories")
def list_categories():
    return [{"id": category_id, "name": name} for category_id, name in CATEGORIES]


@router.post("/reload", response_model=List[Product])
def reload_products(catalog: CatalogService = Depends(get_catalog)):
    return catalog.load()


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, catalog: CatalogService = Depends(get_catalog)):
    product = catalog.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
