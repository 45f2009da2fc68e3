from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shared.config.database import Base

STATUS_ON_SALE = "on_sale"
STATUS_RESERVED = "reserved"
STATUS_COMPLETED = "completed"
LISTING_STATUSES = (STATUS_ON_SALE, STATUS_RESERVED, STATUS_COMPLETED)


class Listing(Base):
    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_listings_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(30), nullable=False, index=True)
    unit = Column(String(20), nullable=True)
    region_name = Column(String(100), nullable=True)
    price = Column(Integer, nullable=True) # null = price on request, not purchasable
    stock_quantity = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_ON_SALE, index=True)
    sold_room_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    images = relationship(
        "ListingImage",
        back_populates="listing",
        lazy="selectin",
        order_by="ListingImage.sort_order",
        cascade="all, delete-orphan",
    )

    @property
    def thumbnail_url(self):
        return self.images[0].url if self.images else None


class ListingImage(Base):
    __tablename__ = "listing_images"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)
    url = Column(String(500), nullable=False) # opaque storage URL
    sort_order = Column(Integer, nullable=False, default=0)

    listing = relationship("Listing", back_populates="images")
