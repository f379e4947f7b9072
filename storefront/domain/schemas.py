# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List
from decimal import Decimal
from datetime import datetime


class Identity(BaseModel):
    """Currently signed-in user as reported by the auth provider."""

    id: str
    email: str = ""


class Product(BaseModel):
    """Catalog row. Read-only from the client's point of view."""

    id: str
    name: str
    description: str = ""
    price: Decimal = Field(..., ge=0)
    category: str
    brand: str = ""
    image_url: str = ""
    stock: int = Field(0, ge=0)
    specs: Dict[str, str] = Field(default_factory=dict)
    rating: float = Field(0.0, ge=0.0, le=5.0)
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartItem(BaseModel):
    """Cart row with the related product embedded when available."""

    id: str
    user_id: str
    product_id: str
    quantity: int = Field(..., ge=1)
    created_at: datetime | None = None
    product: Product | None = None

    model_config = ConfigDict(from_attributes=True)


class ShippingAddress(BaseModel):
    name: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = ""
    zip: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderItem(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    price_at_purchase: Decimal
    created_at: datetime | None = None
    product: Product | None = None


class Order(BaseModel):
    id: str
    user_id: str
    total_amount: Decimal
    status: str
    shipping_address: ShippingAddress
    created_at: datetime | None = None
    items: List[OrderItem] = Field(default_factory=list)


# request / response schemas


class AddItemIn(BaseModel):
    """Schema for adding a catalog product to the cart."""

    product_id: str = Field(..., min_length=1)


class QuantityIn(BaseModel):
    """Schema for setting a cart item quantity; values below 1 remove the item."""

    quantity: int


class CartOut(BaseModel):
    user_id: str | None
    state: str
    items: List[CartItem]
    total: Decimal
    count: int
    ok: bool = True
    notice: str | None = None


class CheckoutIn(BaseModel):
    shipping_address: ShippingAddress


class CredentialsIn(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)
