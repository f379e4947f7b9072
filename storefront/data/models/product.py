from sqlalchemy import Column, Integer, String, Text, Numeric, Float, DateTime, JSON

from storefront.data.database import Base
from storefront.data.models._columns import new_id, utcnow


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, nullable=False, index=True)
    brand = Column(String, nullable=False, default="")
    image_url = Column(String, nullable=False, default="")
    stock = Column(Integer, nullable=False, default=0)
    specs = Column(JSON, nullable=False, default=dict)
    rating = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
