from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, text
from sqlalchemy.sql import func

from shared.config.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShippingAddress(Base):
    __tablename__ = "shipping_addresses"
    __table_args__ = (
        # At most one default per owner, enforced by the database.
        Index(
            "uq_shipping_addresses_one_default",
            "owner_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    receiver_name = Column(String(50), nullable=False)
    receiver_phone = Column(String(30), nullable=False)
    postal_code = Column(String(10), nullable=True)
    road_address = Column(String(255), nullable=False)
    address_detail = Column(String(255), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
