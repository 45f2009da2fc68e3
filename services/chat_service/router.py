from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import (
    MessageResponse,
    MessageSend,
    PaymentRequestCreate,
    RoomOpen,
    RoomResponse,
    RoomSummary,
)
from .service import ChatService

router = APIRouter(tags=["Chat"])
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "chat", "status": "running"}


@router.post("/rooms", response_model=RoomResponse)
async def open_room(
    payload: RoomOpen,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService.open_room(db, user_id, payload.listing_id)


@router.post("/rooms/support", response_model=RoomResponse)
async def open_support_room(
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService.open_support_room(db, user_id)


@router.get("/rooms", response_model=list[RoomSummary])
async def list_rooms(
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    summaries = await ChatService.list_rooms(db, user_id)
    return [
        RoomSummary(
            room=RoomResponse.model_validate(item["room"]),
            other_user_id=item["other_user_id"],
            last_message=(
                MessageResponse.from_message(item["last_message"])
                if item["last_message"] is not None
                else None
            ),
            unread_count=item["unread_count"],
        )
        for item in summaries
    ]


@router.get("/listings/{listing_id}/rooms", response_model=list[RoomResponse])
async def list_listing_rooms(
    listing_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService.list_listing_rooms(db, user_id, listing_id)


@router.get("/rooms/{room_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    room_id: int,
    limit: int = Query(default=100, ge=1, le=500),
    before_id: Optional[int] = Query(default=None),
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await ChatService.get_messages(db, user_id, room_id, limit=limit, before_id=before_id)
    return [MessageResponse.from_message(m) for m in messages]


@router.post(
    "/rooms/{room_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    room_id: int,
    payload: MessageSend,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await ChatService.send_text(db, user_id, room_id, payload.content)
    return MessageResponse.from_message(message)


@router.post(
    "/rooms/{room_id}/payment-request",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_payment(
    room_id: int,
    payload: PaymentRequestCreate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await ChatService.request_payment(db, user_id, room_id, payload.quantity)
    return MessageResponse.from_message(message)


@router.post("/rooms/{room_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    room_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ChatService.mark_read(db, user_id, room_id)


@router.post("/rooms/{room_id}/leave")
async def leave_room(
    room_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await ChatService.leave_room(db, user_id, room_id)
    return {"room_id": room_id, "left": True, "deleted": deleted}
