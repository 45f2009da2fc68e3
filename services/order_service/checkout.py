"""
Checkout: place the order, then post the receipt into the buyer/seller
conversation.

The receipt runs after the order has committed. If it cannot be posted
the order still stands; the gap is logged as `receipt_message_failed`
and counted, and the response says `receipt_posted: false`.
"""
import time

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.chat_service.notifier import ChatNotifier
from shared.errors import MarketError, NotFound, OutOfStock, ValidationError
from shared.observability import market_checkout_duration_seconds, market_checkout_total

from .schemas import CheckoutResponse, OrderCreate, OrderResponse
from .service import OrderFactory

logger = structlog.get_logger(__name__)


def _failure_label(exc: MarketError) -> str:
    if isinstance(exc, OutOfStock):
        return "out_of_stock"
    if isinstance(exc, NotFound):
        return "not_found"
    if isinstance(exc, ValidationError):
        return "invalid"
    return "failed"


class CheckoutService:

    @staticmethod
    async def checkout(db: AsyncSession, buyer_id: int, data: OrderCreate) -> CheckoutResponse:
        started = time.perf_counter()
        structlog.contextvars.bind_contextvars(buyer_id=buyer_id, listing_id=data.listing_id)
        try:
            try:
                result = await OrderFactory.place_order(db, buyer_id, data)
            except MarketError as e:
                market_checkout_total.labels(status=_failure_label(e)).inc()
                logger.info("checkout_rejected", reason=e.code, detail=e.message)
                raise

            market_checkout_total.labels(status="success").inc()
            order = OrderResponse.from_order(result.order)
            receipt_posted = await ChatNotifier.post_order_receipt(
                db, result.order, result.thumbnail_url
            )
            return CheckoutResponse(
                order=order,
                remaining_stock=result.remaining_stock,
                receipt_posted=receipt_posted,
                address_saved=result.address_saved,
            )
        finally:
            market_checkout_duration_seconds.observe(time.perf_counter() - started)
            structlog.contextvars.unbind_contextvars("buyer_id", "listing_id")
