"""Order Factory and Inventory Ledger: validation, atomicity and no oversell."""
import asyncio

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from services.address_service.models import ShippingAddress
from services.address_service.schemas import AddressFields
from services.address_service.service import AddressService
from services.listing_service.ledger import InventoryLedger
from services.listing_service.models import Listing
from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderFactory
from shared.errors import NotFound, OutOfStock, PersistenceError, ValidationError

from .conftest import BUYER_ID, OTHER_BUYER_ID, SELLER_ID, SHIPPING, add_listing


def order_request(listing_id, quantity=1, **overrides):
    data = {"listing_id": listing_id, "quantity": quantity, "shipping": SHIPPING}
    data.update(overrides)
    return OrderCreate(**data)


async def count_orders(db, listing_id):
    return await db.scalar(select(func.count(Order.id)).where(Order.listing_id == listing_id))


@pytest.mark.asyncio
async def test_checkout_scenario_from_stock_of_three(db):
    listing_id = (await add_listing(db, price=10000, stock=3)).id

    first = await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 2))
    assert first.order.total_price == 20000
    assert first.order.unit_price == 10000
    assert first.order.status == "payment_completed"
    assert first.remaining_stock == 1

    with pytest.raises(OutOfStock):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 2))
    assert await InventoryLedger.available(db, listing_id) == 1
    assert await count_orders(db, listing_id) == 1

    last = await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 1))
    assert last.remaining_stock == 0
    assert await InventoryLedger.available(db, listing_id) == 0
    assert await count_orders(db, listing_id) == 2


@pytest.mark.asyncio
async def test_ledger_reserve_reports_missing_and_unknown_stock(db):
    unknown_id = (await add_listing(db, stock=None)).id

    with pytest.raises(NotFound):
        await InventoryLedger.reserve(db, 9999, 1)
    with pytest.raises(OutOfStock):
        await InventoryLedger.reserve(db, unknown_id, 1)
    await db.rollback()

    assert await InventoryLedger.available(db, unknown_id) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -3])
async def test_non_positive_quantity_is_rejected_before_touching_stock(db, quantity):
    listing_id = (await add_listing(db, stock=5)).id

    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, quantity))

    assert await InventoryLedger.available(db, listing_id) == 5


@pytest.mark.asyncio
async def test_unpriced_listing_cannot_be_purchased(db):
    listing_id = (await add_listing(db, price=None, stock=5)).id

    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id))

    assert await count_orders(db, listing_id) == 0


@pytest.mark.asyncio
async def test_missing_listing_is_not_found(db):
    with pytest.raises(NotFound):
        await OrderFactory.place_order(db, BUYER_ID, order_request(424242))


@pytest.mark.asyncio
async def test_seller_cannot_buy_own_listing(db):
    listing_id = (await add_listing(db)).id

    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, SELLER_ID, order_request(listing_id))


@pytest.mark.asyncio
async def test_recipient_and_road_address_are_required(db):
    listing_id = (await add_listing(db, stock=5)).id
    blank_phone = dict(SHIPPING, receiver_phone="   ")
    no_road = dict(SHIPPING, road_address="")

    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, shipping=blank_phone))
    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, shipping=no_road))
    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, shipping=None))

    assert await InventoryLedger.available(db, listing_id) == 5


@pytest.mark.asyncio
async def test_unknown_stock_is_capped_then_unavailable(db):
    listing_id = (await add_listing(db, stock=None)).id

    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 11))
    with pytest.raises(OutOfStock):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 2))


@pytest.mark.asyncio
async def test_failed_order_insert_leaves_stock_untouched(db, monkeypatch):
    listing_id = (await add_listing(db, stock=4)).id

    async def broken_insert(session, order):
        raise OperationalError("INSERT INTO orders", {}, Exception("disk I/O error"))

    monkeypatch.setattr(OrderRepository, "add_order", staticmethod(broken_insert))

    with pytest.raises(PersistenceError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 2))

    assert await InventoryLedger.available(db, listing_id) == 4
    assert await count_orders(db, listing_id) == 0


@pytest.mark.asyncio
async def test_total_price_is_a_snapshot(db):
    listing = await add_listing(db, price=10000, stock=5)
    result = await OrderFactory.place_order(db, BUYER_ID, order_request(listing.id, 3))

    listing.price = 15000
    await db.commit()

    stored = await OrderRepository.get_order(db, result.order_id)
    await db.refresh(stored)
    assert stored.unit_price == 10000
    assert stored.total_price == 30000


@pytest.mark.asyncio
async def test_shipping_snapshot_survives_address_edits(db):
    listing_id = (await add_listing(db, stock=5)).id
    address = await AddressService.upsert_address(db, BUYER_ID, AddressFields(**SHIPPING))

    result = await OrderFactory.place_order(
        db, BUYER_ID, order_request(listing_id, shipping=None, address_id=address.id)
    )
    await AddressService.upsert_address(
        db,
        BUYER_ID,
        AddressFields(**dict(SHIPPING, road_address="1 Jongno, Seoul")),
        address_id=address.id,
    )

    stored = await OrderRepository.get_order(db, result.order_id)
    await db.refresh(stored)
    assert stored.ship_road_address == SHIPPING["road_address"]
    assert stored.ship_receiver_name == SHIPPING["receiver_name"]


@pytest.mark.asyncio
async def test_someone_elses_saved_address_is_not_usable(db):
    listing_id = (await add_listing(db, stock=5)).id
    address = await AddressService.upsert_address(db, OTHER_BUYER_ID, AddressFields(**SHIPPING))

    with pytest.raises(NotFound):
        await OrderFactory.place_order(
            db, BUYER_ID, order_request(listing_id, shipping=None, address_id=address.id)
        )


@pytest.mark.asyncio
async def test_save_address_reuses_an_identical_entry(db):
    listing_id = (await add_listing(db, stock=5)).id

    await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, save_address=True))
    await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, save_address=True))

    saved = await db.scalar(
        select(func.count(ShippingAddress.id)).where(ShippingAddress.owner_id == BUYER_ID)
    )
    assert saved == 1


@pytest.mark.asyncio
async def test_full_address_book_does_not_block_the_purchase(db):
    listing_id = (await add_listing(db, stock=5)).id
    for n in range(4):
        await AddressService.upsert_address(
            db, BUYER_ID, AddressFields(**dict(SHIPPING, address_detail=f"Annex {n + 1}"))
        )

    result = await OrderFactory.place_order(
        db, BUYER_ID, order_request(listing_id, 2, save_address=True)
    )

    assert result.order.quantity == 2
    assert result.address_saved is False
    assert await InventoryLedger.available(db, listing_id) == 3
    saved = await db.scalar(
        select(func.count(ShippingAddress.id)).where(ShippingAddress.owner_id == BUYER_ID)
    )
    assert saved == 4


@pytest.mark.asyncio
async def test_address_saved_is_reported_only_when_requested(db):
    listing_id = (await add_listing(db, stock=5)).id

    plain = await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id))
    saving = await OrderFactory.place_order(
        db, BUYER_ID, order_request(listing_id, save_address=True)
    )

    assert plain.address_saved is None
    assert saving.address_saved is True


@pytest.mark.asyncio
async def test_order_is_charged_the_price_current_at_decrement(db, monkeypatch):
    listing_id = (await add_listing(db, price=10000, stock=5)).id
    reserve = InventoryLedger.reserve

    async def seller_edits_price_first(session, lid, quantity):
        await session.execute(update(Listing).where(Listing.id == lid).values(price=12000))
        return await reserve(session, lid, quantity)

    monkeypatch.setattr(InventoryLedger, "reserve", staticmethod(seller_edits_price_first))

    result = await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 2))

    assert result.order.unit_price == 12000
    assert result.order.total_price == 24000


@pytest.mark.asyncio
async def test_price_cleared_before_decrement_rolls_back(db, monkeypatch):
    listing_id = (await add_listing(db, price=10000, stock=5)).id
    reserve = InventoryLedger.reserve

    async def seller_clears_price_first(session, lid, quantity):
        await session.execute(update(Listing).where(Listing.id == lid).values(price=None))
        return await reserve(session, lid, quantity)

    monkeypatch.setattr(InventoryLedger, "reserve", staticmethod(seller_clears_price_first))

    with pytest.raises(ValidationError):
        await OrderFactory.place_order(db, BUYER_ID, order_request(listing_id, 2))

    assert await InventoryLedger.available(db, listing_id) == 5
    assert await count_orders(db, listing_id) == 0


@pytest.mark.asyncio
async def test_concurrent_orders_never_oversell(session_factory):
    stock = 3
    async with session_factory() as setup:
        listing_id = (await add_listing(setup, stock=stock)).id

    async def attempt(buyer_id):
        async with session_factory() as session:
            try:
                await OrderFactory.place_order(session, buyer_id, order_request(listing_id, 1))
                return "ok"
            except OutOfStock:
                return "out_of_stock"

    outcomes = await asyncio.gather(*(attempt(100 + i) for i in range(stock + 1)))

    assert outcomes.count("ok") == stock
    assert outcomes.count("out_of_stock") == 1
    async with session_factory() as check:
        assert await InventoryLedger.available(check, listing_id) == 0
        assert await count_orders(check, listing_id) == stock
