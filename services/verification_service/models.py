from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from shared.config.database import Base

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


class SellerVerification(Base):
    __tablename__ = "seller_verifications"

    user_id = Column(Integer, primary_key=True)
    farm_name = Column(String(100), nullable=False)
    owner_name = Column(String(50), nullable=False)
    phone = Column(String(30), nullable=False)
    address = Column(String(255), nullable=False)
    location_note = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    business_license_path = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    requested_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Integer, nullable=True)
    rejection_reason = Column(String(255), nullable=True)
