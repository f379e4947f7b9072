# storefront/data/seed.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from storefront.data.store import DataStore
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {
        "name": "UltraView 27 QHD",
        "description": "27 inch IPS panel, 2560x1440, 165Hz",
        "price": Decimal("329.99"),
        "category": "monitors",
        "brand": "Lumina",
        "stock": 14,
        "specs": {"size": "27\"", "resolution": "2560x1440", "refresh": "165Hz"},
        "rating": 4.6,
    },
    {
        "name": "ProArt 32 4K",
        "description": "Colour accurate 4K monitor for creators",
        "price": Decimal("749.00"),
        "category": "monitors",
        "brand": "Lumina",
        "stock": 5,
        "specs": {"size": "32\"", "resolution": "3840x2160", "panel": "IPS"},
        "rating": 4.8,
    },
    {
        "name": "Vortex RTX 4070",
        "description": "12GB GDDR6X graphics card with triple fan cooler",
        "price": Decimal("599.99"),
        "category": "graphics-cards",
        "brand": "Vortex",
        "stock": 8,
        "specs": {"memory": "12GB", "boost": "2475MHz"},
        "rating": 4.7,
    },
    {
        "name": "Core X9 7950",
        "description": "16 core desktop processor",
        "price": Decimal("549.00"),
        "category": "processors",
        "brand": "Silicore",
        "stock": 11,
        "specs": {"cores": "16", "threads": "32", "socket": "AM5"},
        "rating": 4.9,
    },
    {
        "name": "Velocity DDR5 32GB",
        "description": "2x16GB DDR5-6000 kit",
        "price": Decimal("119.99"),
        "category": "memory",
        "brand": "Kestrel",
        "stock": 30,
        "specs": {"capacity": "32GB", "speed": "6000MT/s"},
        "rating": 4.5,
    },
    {
        "name": "Swift NVMe 2TB",
        "description": "PCIe 4.0 solid state drive",
        "price": Decimal("159.00"),
        "category": "storage",
        "brand": "Kestrel",
        "stock": 0,
        "specs": {"capacity": "2TB", "interface": "PCIe 4.0 x4"},
        "rating": 4.4,
    },
    {
        "name": "Tactile TKL Keyboard",
        "description": "Tenkeyless mechanical keyboard, brown switches",
        "price": Decimal("89.50"),
        "category": "peripherals",
        "brand": "Clackworks",
        "stock": 22,
        "specs": {"layout": "TKL", "switches": "brown"},
        "rating": 4.3,
    },
    {
        "name": "Steady 850W Gold",
        "description": "Fully modular 80+ Gold power supply",
        "price": Decimal("129.00"),
        "category": "power-supplies",
        "brand": "Ampere",
        "stock": 9,
        "specs": {"wattage": "850W", "efficiency": "80+ Gold"},
        "rating": 4.6,
    },
    {
        "name": "Airflow Mid Tower",
        "description": "Mesh front ATX case with three fans",
        "price": Decimal("99.00"),
        "category": "cases",
        "brand": "Ampere",
        "stock": 12,
        "specs": {"form factor": "ATX", "fans": "3x120mm"},
        "rating": 4.2,
    },
]


def seed(store: DataStore) -> int:
    """Insert the sample catalog when the products table is empty. Returns rows inserted."""
    # not forcing: only seed if empty
    if store.query("products"):
        return 0

    now = datetime.now(timezone.utc)
    for offset, product in enumerate(PRODUCTS):
        # distinct timestamps keep the newest-first ordering stable
        store.insert("products", {**product, "created_at": now - timedelta(minutes=offset)})

    logger.info(f"Seeded {len(PRODUCTS)} products")
    return len(PRODUCTS)
