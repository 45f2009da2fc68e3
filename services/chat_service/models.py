from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.sql import func

from shared.config.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, nullable=True, index=True) # null for support rooms
    buyer_id = Column(Integer, nullable=False, index=True)
    seller_id = Column(Integer, nullable=False, index=True)
    buyer_last_read_at = Column(DateTime(timezone=True), nullable=True)
    seller_last_read_at = Column(DateTime(timezone=True), nullable=True)
    buyer_left_at = Column(DateTime(timezone=True), nullable=True)
    seller_left_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.buyer_id, self.seller_id)

    def role_of(self, user_id: int) -> str:
        return "buyer" if user_id == self.buyer_id else "seller"

    def other_party(self, user_id: int) -> int:
        return self.seller_id if user_id == self.buyer_id else self.buyer_id


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, nullable=False)
    content = Column(Text, nullable=False) # wire encoding, see messages.py
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )
