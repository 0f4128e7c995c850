import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import Base, utcnow


class InventoryStock(Base):
    __tablename__ = "inventory_stock"
    __table_args__ = (
        UniqueConstraint("product_id", "store_id", name="ux_inventory_stock_product_store"),
        CheckConstraint("quantity >= 0", name="ck_inventory_stock_quantity_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_inventory_stock_min_stock_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    store_id = Column(Uuid, ForeignKey("stores.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False, default=0)
    # reorder threshold: quantity < min_stock is "low stock"
    min_stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = relationship("Product", back_populates="stocks")
    store = relationship("Store", back_populates="stocks")

    @property
    def is_low_stock(self) -> bool:
        return int(self.quantity or 0) < int(self.min_stock or 0)
