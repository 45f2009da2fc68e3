from typing import Literal

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import get_db
from shared.security import get_current_user, limiter

from .checkout import CheckoutService
from .lifecycle import OrderLifecycle, is_review_eligible
from .schemas import CheckoutResponse, OrderCreate, OrderResponse
from .service import OrderService

router = APIRouter(tags=["Orders"])
public_router = APIRouter()

@public_router.get("/health")
async def health_check():
    return {"service": "order", "status": "running"}


@router.post("/", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.CHECKOUT_RATE_LIMIT)
async def checkout(
    request: Request,                        # REQUIRED: slowapi needs this to key the limit
    payload: OrderCreate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CheckoutService.checkout(db, user_id, payload)

@router.get("/", response_model=list[OrderResponse])
async def list_orders(
    role: Literal["buyer", "seller"] = Query(default="buyer"),
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if role == "seller":
        orders = await OrderService.list_sales(db, user_id)
    else:
        orders = await OrderService.list_purchases(db, user_id)
    return [OrderResponse.from_order(o, is_review_eligible(o, user_id)) for o in orders]

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.get_order_for(db, user_id, order_id)
    return OrderResponse.from_order(order, is_review_eligible(order, user_id))

@router.post("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderLifecycle.ship(db, user_id, order_id)
    return OrderResponse.from_order(order)

@router.post("/{order_id}/deliver", response_model=OrderResponse)
async def mark_delivered(
    order_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderLifecycle.mark_delivered(db, user_id, order_id)
    return OrderResponse.from_order(order)

@router.post("/{order_id}/confirm", response_model=OrderResponse)
async def confirm_receipt(
    order_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderLifecycle.confirm_receipt(db, user_id, order_id)
    return OrderResponse.from_order(order, is_review_eligible(order, user_id))
