from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ChatMessage, ChatRoom


class ChatRepository:

    @staticmethod
    async def get_room(db: AsyncSession, room_id: int) -> Optional[ChatRoom]:
        result = await db.execute(select(ChatRoom).where(ChatRoom.id == room_id))
        return result.scalars().first()

    @staticmethod
    async def find_room(
        db: AsyncSession, buyer_id: int, seller_id: int, listing_id: Optional[int]
    ) -> Optional[ChatRoom]:
        stmt = select(ChatRoom).where(
            ChatRoom.buyer_id == buyer_id, ChatRoom.seller_id == seller_id
        )
        if listing_id is None:
            stmt = stmt.where(ChatRoom.listing_id.is_(None))
        else:
            stmt = stmt.where(ChatRoom.listing_id == listing_id)
        result = await db.execute(stmt.order_by(ChatRoom.id))
        return result.scalars().first()

    @staticmethod
    async def create_room(db: AsyncSession, room: ChatRoom) -> ChatRoom:
        db.add(room)
        await db.commit()
        await db.refresh(room)
        return room

    @staticmethod
    async def save_room(db: AsyncSession, room: ChatRoom) -> ChatRoom:
        db.add(room)
        await db.commit()
        await db.refresh(room)
        return room

    @staticmethod
    async def list_rooms_for_user(db: AsyncSession, user_id: int):
        stmt = (
            select(ChatRoom)
            .where(
                or_(
                    (ChatRoom.buyer_id == user_id) & ChatRoom.buyer_left_at.is_(None),
                    (ChatRoom.seller_id == user_id) & ChatRoom.seller_left_at.is_(None),
                )
            )
            .order_by(ChatRoom.created_at.desc(), ChatRoom.id.desc())
        )
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def list_rooms_for_listing(db: AsyncSession, listing_id: int):
        result = await db.execute(
            select(ChatRoom).where(ChatRoom.listing_id == listing_id).order_by(ChatRoom.id)
        )
        return result.scalars().all()

    @staticmethod
    async def delete_room(db: AsyncSession, room: ChatRoom) -> None:
        await db.execute(delete(ChatMessage).where(ChatMessage.room_id == room.id))
        await db.delete(room)
        await db.commit()

    @staticmethod
    async def add_message(db: AsyncSession, message: ChatMessage) -> ChatMessage:
        db.add(message)
        await db.commit()
        await db.refresh(message)
        return message

    @staticmethod
    async def get_messages(
        db: AsyncSession, room_id: int, limit: int = 100, before_id: Optional[int] = None
    ):
        stmt = select(ChatMessage).where(ChatMessage.room_id == room_id)
        if before_id is not None:
            stmt = stmt.where(ChatMessage.id < before_id)
        stmt = stmt.order_by(ChatMessage.id.desc()).limit(limit)
        result = await db.execute(stmt)
        return list(reversed(result.scalars().all()))

    @staticmethod
    async def last_message(db: AsyncSession, room_id: int) -> Optional[ChatMessage]:
        result = await db.execute(
            select(ChatMessage)
            .where(ChatMessage.room_id == room_id)
            .order_by(ChatMessage.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def count_unread(db: AsyncSession, room_id: int, reader_id: int, since) -> int:
        stmt = select(func.count(ChatMessage.id)).where(
            ChatMessage.room_id == room_id, ChatMessage.sender_id != reader_id
        )
        if since is not None:
            stmt = stmt.where(ChatMessage.created_at > since)
        return await db.scalar(stmt) or 0
