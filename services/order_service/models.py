from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from shared.config.database import Base

STATUS_PAYMENT_COMPLETED = "payment_completed"
STATUS_SHIPPING = "shipping"
STATUS_DELIVERED = "delivered"
STATUS_CONFIRMED = "confirmed"
ORDER_STATUSES = (
    STATUS_PAYMENT_COMPLETED,
    STATUS_SHIPPING,
    STATUS_DELIVERED,
    STATUS_CONFIRMED,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_orders_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, nullable=False, index=True)
    buyer_id = Column(Integer, nullable=False, index=True)
    seller_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False) # snapshot at purchase time
    total_price = Column(Integer, nullable=False) # calculated at creation, never updated
    status = Column(String(20), nullable=False, default=STATUS_PAYMENT_COMPLETED)
    listing_title = Column(String(100), nullable=False)

    # Shipping snapshot: copied, not referenced, so later edits to the
    # address book never rewrite order history.
    ship_receiver_name = Column(String(50), nullable=False)
    ship_receiver_phone = Column(String(30), nullable=False)
    ship_postal_code = Column(String(10), nullable=True)
    ship_road_address = Column(String(255), nullable=False)
    ship_address_detail = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
