"""
Conversations between a buyer and a seller about one listing, plus
support rooms with the configured support account.

`post_message` is the channel every other service writes through; the
realtime fan-out to connected clients happens outside this process.
"""
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.listing_service.repository import ListingRepository
from shared.config import settings
from shared.errors import NotFound, PermissionDenied, ValidationError

from .messages import RESERVED_PREFIXES, ChatContent, PaymentRequestPayload, encode
from .models import ChatMessage, ChatRoom, utcnow
from .repository import ChatRepository

logger = structlog.get_logger(__name__)


class ChatService:

    @staticmethod
    async def get_room_for(db: AsyncSession, user_id: int, room_id: int) -> ChatRoom:
        room = await ChatRepository.get_room(db, room_id)
        if room is None:
            raise NotFound("Conversation not found")
        if not room.is_participant(user_id):
            raise PermissionDenied("You are not part of this conversation.")
        return room

    @staticmethod
    async def get_or_create_room(
        db: AsyncSession, buyer_id: int, seller_id: int, listing_id: Optional[int]
    ) -> ChatRoom:
        room = await ChatRepository.find_room(db, buyer_id, seller_id, listing_id)
        if room is None:
            room = await ChatRepository.create_room(
                db, ChatRoom(buyer_id=buyer_id, seller_id=seller_id, listing_id=listing_id)
            )
            logger.info("chat_room_opened", room_id=room.id, listing_id=listing_id)
        elif room.buyer_left_at is not None or room.seller_left_at is not None:
            room.buyer_left_at = None
            room.seller_left_at = None
            room = await ChatRepository.save_room(db, room)
        return room

    @staticmethod
    async def open_room(db: AsyncSession, buyer_id: int, listing_id: int) -> ChatRoom:
        listing = await ListingRepository.get_listing(db, listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        if listing.owner_id == buyer_id:
            raise ValidationError("You cannot start a conversation about your own listing.")
        return await ChatService.get_or_create_room(db, buyer_id, listing.owner_id, listing.id)

    @staticmethod
    async def open_support_room(db: AsyncSession, user_id: int) -> ChatRoom:
        support_id = settings.SUPPORT_USER_ID
        if support_id is None:
            raise NotFound("Customer support is not configured.")
        if support_id == user_id:
            raise ValidationError("The support account cannot open a support room.")
        return await ChatService.get_or_create_room(db, user_id, support_id, None)

    @staticmethod
    async def post_message(
        db: AsyncSession, room_id: int, sender_id: int, content: ChatContent
    ) -> ChatMessage:
        message = ChatMessage(room_id=room_id, sender_id=sender_id, content=encode(content))
        message = await ChatRepository.add_message(db, message)
        logger.info("chat_message_posted", room_id=room_id, kind=content.kind.value)
        return message

    @staticmethod
    async def send_text(db: AsyncSession, user_id: int, room_id: int, text: str) -> ChatMessage:
        room = await ChatService.get_room_for(db, user_id, room_id)
        trimmed = (text or "").strip()
        if not trimmed:
            raise ValidationError("Enter a message.")
        if len(trimmed) > settings.MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Messages must be at most {settings.MAX_MESSAGE_LENGTH} characters."
            )
        # User text must not decode as a structured message.
        if trimmed.startswith(RESERVED_PREFIXES):
            raise ValidationError("This message format is reserved.")
        return await ChatService.post_message(db, room.id, user_id, ChatContent.text(trimmed))

    @staticmethod
    async def request_payment(
        db: AsyncSession, seller_id: int, room_id: int, quantity: int
    ) -> ChatMessage:
        room = await ChatService.get_room_for(db, seller_id, room_id)
        if room.seller_id != seller_id or room.listing_id is None:
            raise PermissionDenied("Only the seller can request payment for a listing.")
        listing = await ListingRepository.get_listing(db, room.listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        if listing.price is None:
            raise ValidationError("Set a price before requesting payment.")
        if quantity <= 0:
            raise ValidationError("Quantity must be at least 1.")

        payload = PaymentRequestPayload(
            listing_id=listing.id,
            title=listing.title,
            unit_price=listing.price,
            quantity=quantity,
            total_price=listing.price * quantity,
            thumbnail_url=listing.thumbnail_url,
        )
        return await ChatService.post_message(
            db, room.id, seller_id, ChatContent.payment_request(payload)
        )

    @staticmethod
    async def get_messages(
        db: AsyncSession, user_id: int, room_id: int, limit: int = 100, before_id=None
    ):
        room = await ChatService.get_room_for(db, user_id, room_id)
        return await ChatRepository.get_messages(db, room.id, limit=limit, before_id=before_id)

    @staticmethod
    async def mark_read(db: AsyncSession, user_id: int, room_id: int) -> ChatRoom:
        room = await ChatService.get_room_for(db, user_id, room_id)
        setattr(room, f"{room.role_of(user_id)}_last_read_at", utcnow())
        return await ChatRepository.save_room(db, room)

    @staticmethod
    async def leave_room(db: AsyncSession, user_id: int, room_id: int) -> bool:
        """Hide the room for the caller. Returns True when the room was deleted."""
        room = await ChatService.get_room_for(db, user_id, room_id)
        setattr(room, f"{room.role_of(user_id)}_left_at", utcnow())
        if room.buyer_left_at is not None and room.seller_left_at is not None:
            await ChatRepository.delete_room(db, room)
            logger.info("chat_room_deleted", room_id=room_id)
            return True
        await ChatRepository.save_room(db, room)
        logger.info("chat_room_left", room_id=room_id, user_id=user_id)
        return False

    @staticmethod
    async def list_rooms(db: AsyncSession, user_id: int):
        """Rooms of the caller with last message and unread count."""
        summaries = []
        for room in await ChatRepository.list_rooms_for_user(db, user_id):
            last_read = getattr(room, f"{room.role_of(user_id)}_last_read_at")
            summaries.append(
                {
                    "room": room,
                    "other_user_id": room.other_party(user_id),
                    "last_message": await ChatRepository.last_message(db, room.id),
                    "unread_count": await ChatRepository.count_unread(
                        db, room.id, user_id, last_read
                    ),
                }
            )
        return summaries

    @staticmethod
    async def list_listing_rooms(db: AsyncSession, seller_id: int, listing_id: int):
        """Buyer conversations of a listing, for picking who completed the sale."""
        listing = await ListingRepository.get_listing(db, listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        if listing.owner_id != seller_id:
            raise PermissionDenied("Only the seller can see these conversations.")
        return await ChatRepository.list_rooms_for_listing(db, listing_id)
