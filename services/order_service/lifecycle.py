"""
Order lifecycle: payment_completed -> shipping -> delivered -> confirmed.

Moves are forward only and one step at a time. The seller ships and
marks delivery; only the buyer confirms receipt, and only once the order
is delivered. Each move is a compare-and-set on the current status, so
two concurrent actions on the same order cannot both apply.
"""
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InvalidTransition, PermissionDenied
from shared.observability import market_order_transitions_total

from .models import (
    ORDER_STATUSES,
    STATUS_CONFIRMED,
    STATUS_DELIVERED,
    STATUS_PAYMENT_COMPLETED,
    STATUS_SHIPPING,
    Order,
)
from .repository import OrderRepository
from .service import OrderService

logger = structlog.get_logger(__name__)

BUYER = "buyer"
SELLER = "seller"

# target status -> (required current status, actor)
TRANSITIONS = {
    STATUS_SHIPPING: (STATUS_PAYMENT_COMPLETED, SELLER),
    STATUS_DELIVERED: (STATUS_SHIPPING, SELLER),
    STATUS_CONFIRMED: (STATUS_DELIVERED, BUYER),
}


def can_transition(current: str, target: str) -> bool:
    rule = TRANSITIONS.get(target)
    return rule is not None and rule[0] == current


def is_review_eligible(order: Order, user_id: int) -> bool:
    return order.status == STATUS_CONFIRMED and order.buyer_id == user_id


class OrderLifecycle:

    @staticmethod
    async def advance(db: AsyncSession, actor_id: int, order_id: int, target: str) -> Order:
        if target not in ORDER_STATUSES:
            raise InvalidTransition(f"Unknown order status '{target}'")

        order = await OrderService.get_order_for(db, actor_id, order_id)
        rule = TRANSITIONS.get(target)
        if rule is None:
            raise InvalidTransition(f"Orders cannot move to '{target}'")
        required, role = rule

        actor = order.buyer_id if role == BUYER else order.seller_id
        if actor_id != actor:
            raise PermissionDenied(f"Only the {role} can move this order to '{target}'.")

        if order.status != required:
            raise InvalidTransition(
                f"Order is '{order.status}' and cannot move to '{target}'."
            )

        moved = await OrderRepository.compare_and_set_status(db, order.id, required, target)
        await db.refresh(order)
        if not moved:
            raise InvalidTransition(
                f"Order is '{order.status}' and cannot move to '{target}'."
            )

        market_order_transitions_total.labels(to_status=target).inc()
        logger.info(
            "order_status_changed",
            order_id=order.id,
            from_status=required,
            to_status=target,
            actor_id=actor_id,
        )
        return order

    @staticmethod
    async def ship(db: AsyncSession, seller_id: int, order_id: int) -> Order:
        return await OrderLifecycle.advance(db, seller_id, order_id, STATUS_SHIPPING)

    @staticmethod
    async def mark_delivered(db: AsyncSession, seller_id: int, order_id: int) -> Order:
        return await OrderLifecycle.advance(db, seller_id, order_id, STATUS_DELIVERED)

    @staticmethod
    async def confirm_receipt(db: AsyncSession, buyer_id: int, order_id: int) -> Order:
        return await OrderLifecycle.advance(db, buyer_id, order_id, STATUS_CONFIRMED)
