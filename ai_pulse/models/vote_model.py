from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum as SqlEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ai_pulse.database import Base
import enum

class VoteType(enum.Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"

# Sentinel stored when the lookup service answered but gave no usable code
UNKNOWN_COUNTRY = "Unknown"

class Vote(Base):
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    vote_type = Column(
        SqlEnum(
            VoteType,
            name="vote_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    ip_address = Column(String(64))
    user_agent = Column(String(512))
    fingerprint = Column(String(255))
    # ISO code, "Unknown", or NULL when the lookup never reached the service
    country = Column(String(16), index=True)

    item = relationship("Item", back_populates="votes")
