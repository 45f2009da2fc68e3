from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.sql import func

from shared.config.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("reviewer_id", "listing_id", name="uq_reviews_reviewer_listing"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    reviewer_id = Column(Integer, nullable=False, index=True)
    reviewee_id = Column(Integer, nullable=False, index=True) # the seller
    listing_id = Column(Integer, nullable=False, index=True)
    order_id = Column(Integer, nullable=False)
    rating = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
