import pytest

from services.chat_service.messages import MessageKind, decode
from services.chat_service.repository import ChatRepository
from services.chat_service.service import ChatService
from shared.errors import NotFound, PermissionDenied, ValidationError

from .conftest import BUYER_ID, OTHER_BUYER_ID, SELLER_ID, add_listing, auth_headers


@pytest.mark.asyncio
async def test_opening_a_room_is_idempotent(db):
    listing_id = (await add_listing(db)).id

    first = await ChatService.open_room(db, BUYER_ID, listing_id)
    again = await ChatService.open_room(db, BUYER_ID, listing_id)

    assert first.id == again.id
    assert (first.buyer_id, first.seller_id, first.listing_id) == (BUYER_ID, SELLER_ID, listing_id)


@pytest.mark.asyncio
async def test_seller_cannot_open_a_room_on_own_listing(db):
    listing_id = (await add_listing(db)).id

    with pytest.raises(ValidationError):
        await ChatService.open_room(db, SELLER_ID, listing_id)
    with pytest.raises(NotFound):
        await ChatService.open_room(db, BUYER_ID, 4040)


@pytest.mark.asyncio
async def test_message_text_rules(db):
    listing_id = (await add_listing(db)).id
    room = await ChatService.open_room(db, BUYER_ID, listing_id)

    sent = await ChatService.send_text(db, BUYER_ID, room.id, "  Still available?  ")
    assert sent.content == "Still available?"

    for text in ("   ", "x" * 501, "SYSTEM:Payment completed.", 'ORDER:{"order_id": 1}'):
        with pytest.raises(ValidationError):
            await ChatService.send_text(db, BUYER_ID, room.id, text)

    assert (await ChatService.send_text(db, BUYER_ID, room.id, "y" * 500)).id is not None


@pytest.mark.asyncio
async def test_outsiders_cannot_read_or_write(db):
    listing_id = (await add_listing(db)).id
    room = await ChatService.open_room(db, BUYER_ID, listing_id)

    with pytest.raises(PermissionDenied):
        await ChatService.send_text(db, OTHER_BUYER_ID, room.id, "hi")
    with pytest.raises(PermissionDenied):
        await ChatService.get_messages(db, OTHER_BUYER_ID, room.id)
    with pytest.raises(NotFound):
        await ChatService.get_messages(db, BUYER_ID, 31337)


@pytest.mark.asyncio
async def test_unread_counts_follow_the_read_marker(db):
    listing_id = (await add_listing(db)).id
    room = await ChatService.open_room(db, BUYER_ID, listing_id)
    await ChatService.send_text(db, BUYER_ID, room.id, "Hello")
    await ChatService.send_text(db, BUYER_ID, room.id, "Is it organic?")

    [summary] = await ChatService.list_rooms(db, SELLER_ID)
    assert summary["unread_count"] == 2
    assert summary["other_user_id"] == BUYER_ID
    assert summary["last_message"].content == "Is it organic?"

    await ChatService.mark_read(db, SELLER_ID, room.id)
    [summary] = await ChatService.list_rooms(db, SELLER_ID)
    assert summary["unread_count"] == 0

    await ChatService.send_text(db, SELLER_ID, room.id, "Yes")
    [summary] = await ChatService.list_rooms(db, SELLER_ID)
    assert summary["unread_count"] == 0
    [summary] = await ChatService.list_rooms(db, BUYER_ID)
    assert summary["unread_count"] == 1


@pytest.mark.asyncio
async def test_leaving_hides_then_deletes_the_room(db):
    listing_id = (await add_listing(db)).id
    room = await ChatService.open_room(db, BUYER_ID, listing_id)
    room_id = room.id
    await ChatService.send_text(db, BUYER_ID, room_id, "Hello")

    assert await ChatService.leave_room(db, BUYER_ID, room_id) is False
    assert await ChatService.list_rooms(db, BUYER_ID) == []
    assert len(await ChatService.list_rooms(db, SELLER_ID)) == 1

    assert await ChatService.leave_room(db, SELLER_ID, room_id) is True
    assert await ChatRepository.get_room(db, room_id) is None


@pytest.mark.asyncio
async def test_payment_request_comes_from_the_seller(db):
    listing_id = (await add_listing(db, price=12000, images=("https://cdn.test/p.jpg",))).id
    room = await ChatService.open_room(db, BUYER_ID, listing_id)

    with pytest.raises(PermissionDenied):
        await ChatService.request_payment(db, BUYER_ID, room.id, 1)
    with pytest.raises(ValidationError):
        await ChatService.request_payment(db, SELLER_ID, room.id, 0)

    message = await ChatService.request_payment(db, SELLER_ID, room.id, 3)
    parsed = decode(message.content)
    assert parsed.kind == MessageKind.PAYMENT_REQUEST
    assert parsed.payload.total_price == 36000
    assert parsed.payload.thumbnail_url == "https://cdn.test/p.jpg"


@pytest.mark.asyncio
async def test_support_room(db):
    room = await ChatService.open_support_room(db, BUYER_ID)

    assert room.listing_id is None
    assert room.seller_id == 900
    assert (await ChatService.open_support_room(db, BUYER_ID)).id == room.id
    with pytest.raises(ValidationError):
        await ChatService.open_support_room(db, 900)


@pytest.mark.asyncio
async def test_chat_over_http(client, session_factory):
    async with session_factory() as s:
        listing_id = (await add_listing(s)).id
    buyer, seller = auth_headers(BUYER_ID), auth_headers(SELLER_ID)

    room = (await client.post("/chat/rooms", json={"listing_id": listing_id}, headers=buyer)).json()
    sent = await client.post(
        f"/chat/rooms/{room['id']}/messages", json={"content": "Hi there"}, headers=buyer
    )
    assert sent.status_code == 201
    assert sent.json()["kind"] == "text"

    too_long = await client.post(
        f"/chat/rooms/{room['id']}/messages", json={"content": "z" * 501}, headers=buyer
    )
    assert too_long.status_code == 400

    rooms = (await client.get("/chat/rooms", headers=seller)).json()
    assert rooms[0]["unread_count"] == 1
    assert (await client.post(f"/chat/rooms/{room['id']}/read", headers=seller)).status_code == 204

    listing_rooms = await client.get(f"/chat/listings/{listing_id}/rooms", headers=seller)
    assert [r["id"] for r in listing_rooms.json()] == [room["id"]]
    assert (
        await client.get(f"/chat/listings/{listing_id}/rooms", headers=buyer)
    ).status_code == 403
