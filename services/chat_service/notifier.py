"""
System messages posted into conversations after another service has
committed a state change.

The state change is already durable when these run, so a failure here is
logged and counted but never propagated: the order or the sale stands
even if its chat receipt is missing. A failure rolls the session back,
which expires loaded rows; callers refresh anything they still read.
"""
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import MarketError
from shared.observability import market_receipt_message_failures_total

from .messages import ChatContent, OrderPayload
from .service import ChatService

logger = structlog.get_logger(__name__)

PAYMENT_COMPLETED_TEXT = "Payment completed. The seller will prepare your order."


class ChatNotifier:

    @staticmethod
    async def post_order_receipt(db: AsyncSession, order, thumbnail_url=None) -> bool:
        """Post the payment notice and the order card. Returns False on failure."""
        card = OrderPayload(
            order_id=order.id,
            listing_id=order.listing_id,
            title=order.listing_title,
            quantity=order.quantity,
            total_price=order.total_price,
            thumbnail_url=thumbnail_url,
        )
        buyer_id, seller_id = order.buyer_id, order.seller_id
        try:
            room = await ChatService.get_or_create_room(db, buyer_id, seller_id, card.listing_id)
            await ChatService.post_message(
                db, room.id, buyer_id, ChatContent.system(PAYMENT_COMPLETED_TEXT)
            )
            await ChatService.post_message(db, room.id, buyer_id, ChatContent.order(card))
        except (SQLAlchemyError, MarketError) as e:
            await db.rollback()
            market_receipt_message_failures_total.inc()
            logger.error(
                "receipt_message_failed",
                order_id=card.order_id,
                listing_id=card.listing_id,
                error=str(e),
            )
            return False
        return True

    @staticmethod
    async def post_sold_notice(db: AsyncSession, room, seller_id: int, listing) -> bool:
        room_id, listing_id = room.id, listing.id
        try:
            await ChatService.post_message(
                db, room_id, seller_id, ChatContent.sold(listing_id, listing.title)
            )
        except (SQLAlchemyError, MarketError) as e:
            await db.rollback()
            logger.error(
                "sold_message_failed", listing_id=listing_id, room_id=room_id, error=str(e)
            )
            return False
        return True
