import enum
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, Uuid
from sqlalchemy.orm import relationship

from ..database import Base, utcnow


class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    TRANSFER = "TRANSFER"


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_movements_quantity_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    # NULL for pure IN
    source_store_id = Column(Uuid, ForeignKey("stores.id"), nullable=True, index=True)
    # NULL for pure OUT
    target_store_id = Column(Uuid, ForeignKey("stores.id"), nullable=True, index=True)

    quantity = Column(Integer, nullable=False)
    type = Column(
        Enum(MovementType, name="movement_type", validate_strings=True),
        nullable=False,
        index=True,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    product = relationship("Product")
    source_store = relationship("Store", foreign_keys=[source_store_id])
    target_store = relationship("Store", foreign_keys=[target_store_id])
