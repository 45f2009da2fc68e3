from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from .messages import MessageKind, decode


class RoomOpen(BaseModel):
    listing_id: int


class MessageSend(BaseModel):
    content: str


class PaymentRequestCreate(BaseModel):
    quantity: int = 1


class RoomResponse(BaseModel):
    id: int
    listing_id: Optional[int] = None
    buyer_id: int
    seller_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    id: int
    room_id: int
    sender_id: int
    content: str
    kind: MessageKind
    payload: Dict[str, Any]
    created_at: Optional[datetime] = None

    @classmethod
    def from_message(cls, message) -> "MessageResponse":
        parsed = decode(message.content)
        return cls(
            id=message.id,
            room_id=message.room_id,
            sender_id=message.sender_id,
            content=message.content,
            kind=parsed.kind,
            payload=parsed.payload.model_dump(),
            created_at=message.created_at,
        )


class RoomSummary(BaseModel):
    room: RoomResponse
    other_user_id: int
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
