from sqlalchemy import Column, Integer, String, DateTime, Enum as SqlEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ai_pulse.database import Base
import enum

class ItemCategory(enum.Enum):
    MODEL = "model"
    TOOL = "tool"

class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, unique=True)
    category = Column(
        SqlEnum(
            ItemCategory,
            name="item_category",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Read-only from the item side; votes are only ever appended
    votes = relationship("Vote", back_populates="item", viewonly=True)
