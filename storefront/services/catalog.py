# storefront/services/catalog.py
from typing import Iterable, List

from pydantic import ValidationError

from storefront.data.store import DataStore, NEWEST_FIRST
from storefront.domain.errors import RemoteFailure
from storefront.domain.schemas import Product
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ALL_CATEGORIES = "all"

CATEGORIES = (
    (ALL_CATEGORIES, "All Products"),
    ("monitors", "Monitors"),
    ("graphics-cards", "Graphics Cards"),
    ("processors", "Processors"),
    ("memory", "Memory"),
    ("storage", "Storage"),
    ("peripherals", "Peripherals"),
    ("power-supplies", "Power Supplies"),
    ("cases", "Cases"),
)


def filter_products(
    products: Iterable[Product],
    category: str = ALL_CATEGORIES,
    query: str = "",
) -> List[Product]:
    """
    Visible subset of `products`, input order preserved.

    A category other than "all" must match exactly. A non-empty query must be
    contained, ignoring case, in the name, description or brand.
    """
    filtered = list(products)

    if category != ALL_CATEGORIES:
        filtered = [p for p in filtered if p.category == category]

    if query:
        needle = query.casefold()
        filtered = [
            p
            for p in filtered
            if needle in p.name.casefold()
            or needle in p.description.casefold()
            or needle in p.brand.casefold()
        ]

    return filtered


class CatalogService:
    def __init__(self, store: DataStore):
        self.store = store
        self.products: List[Product] = []
        self.loaded = False

    def load(self) -> List[Product]:
        """Fetch the whole catalog, newest first. Keeps the previous catalog on failure."""
        try:
            rows = self.store.query("products", order=NEWEST_FIRST)
            products = [Product.model_validate(r) for r in rows]
        except (RemoteFailure, ValidationError) as e:
            logger.error(f"Error fetching products: {e}")
            return self.products

        self.products = products
        self.loaded = True
        logger.info(f"Loaded {len(products)} products")
        return products

    def visible(self, category: str = ALL_CATEGORIES, query: str = "") -> List[Product]:
        return filter_products(self.products, category, query)

    def get(self, product_id: str) -> Product | None:
        return next((p for p in self.products if p.id == product_id), None)
