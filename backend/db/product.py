import uuid
from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from .database import Base, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    # soft delete flag; stock rows survive deactivation
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    stocks = relationship("InventoryStock", back_populates="product")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": float(self.price) if self.price is not None else None,
            "active": bool(self.active),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
