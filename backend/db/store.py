import uuid
from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from .database import Base, utcnow


class Store(Base):
    __tablename__ = "stores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    stocks = relationship("InventoryStock", back_populates="store")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
