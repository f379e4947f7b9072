from sqlalchemy import Column, Integer, ForeignKey, String, DateTime

from storefront.data.database import Base
from storefront.data.models._columns import new_id, utcnow


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    # no unique (user_id, product_id) constraint, CartService keeps one row per pair
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
