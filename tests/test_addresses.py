import pytest
from sqlalchemy import func, select

from services.address_service.models import ShippingAddress
from services.address_service.schemas import AddressFields
from services.address_service.service import AddressService
from shared.errors import NotFound, ValidationError

from .conftest import BUYER_ID, OTHER_BUYER_ID, SHIPPING, auth_headers


def fields(n: int) -> AddressFields:
    return AddressFields(**dict(SHIPPING, address_detail=f"Unit {n}"))


async def defaults_of(db, owner_id):
    return (
        await db.execute(
            select(ShippingAddress.id).where(
                ShippingAddress.owner_id == owner_id, ShippingAddress.is_default.is_(True)
            )
        )
    ).scalars().all()


@pytest.mark.asyncio
async def test_first_address_becomes_default(db):
    first = await AddressService.upsert_address(db, BUYER_ID, fields(1))
    second = await AddressService.upsert_address(db, BUYER_ID, fields(2))

    assert first.is_default is True
    assert second.is_default is False
    assert await defaults_of(db, BUYER_ID) == [first.id]


@pytest.mark.asyncio
async def test_setting_a_default_clears_the_previous_one(db):
    first = await AddressService.upsert_address(db, BUYER_ID, fields(1))
    second = await AddressService.upsert_address(db, BUYER_ID, fields(2), set_default=True)
    assert await defaults_of(db, BUYER_ID) == [second.id]

    await AddressService.set_default(db, BUYER_ID, first.id)
    assert await defaults_of(db, BUYER_ID) == [first.id]

    # Other owners are unaffected.
    other = await AddressService.upsert_address(db, OTHER_BUYER_ID, fields(9))
    assert await defaults_of(db, OTHER_BUYER_ID) == [other.id]
    assert await defaults_of(db, BUYER_ID) == [first.id]


@pytest.mark.asyncio
async def test_address_book_is_capped(db):
    for n in range(4):
        await AddressService.upsert_address(db, BUYER_ID, fields(n))

    with pytest.raises(ValidationError):
        await AddressService.upsert_address(db, BUYER_ID, fields(5))

    count = await db.scalar(
        select(func.count(ShippingAddress.id)).where(ShippingAddress.owner_id == BUYER_ID)
    )
    assert count == 4


@pytest.mark.asyncio
async def test_deleting_the_default_promotes_the_newest(db):
    first = await AddressService.upsert_address(db, BUYER_ID, fields(1))
    await AddressService.upsert_address(db, BUYER_ID, fields(2))
    newest = await AddressService.upsert_address(db, BUYER_ID, fields(3))

    promoted = await AddressService.delete_address(db, BUYER_ID, first.id)

    assert promoted == newest.id
    assert await defaults_of(db, BUYER_ID) == [newest.id]


@pytest.mark.asyncio
async def test_deleting_a_non_default_keeps_the_default(db):
    first = await AddressService.upsert_address(db, BUYER_ID, fields(1))
    second = await AddressService.upsert_address(db, BUYER_ID, fields(2))

    assert await AddressService.delete_address(db, BUYER_ID, second.id) is None
    assert await defaults_of(db, BUYER_ID) == [first.id]


@pytest.mark.asyncio
async def test_required_fields_and_ownership(db):
    with pytest.raises(ValidationError):
        await AddressService.upsert_address(
            db, BUYER_ID, AddressFields(**dict(SHIPPING, receiver_name="  "))
        )

    mine = await AddressService.upsert_address(db, BUYER_ID, fields(1))
    with pytest.raises(NotFound):
        await AddressService.delete_address(db, OTHER_BUYER_ID, mine.id)
    with pytest.raises(NotFound):
        await AddressService.set_default(db, OTHER_BUYER_ID, mine.id)


@pytest.mark.asyncio
async def test_address_book_over_http(client):
    headers = auth_headers(BUYER_ID)

    created = await client.post("/addresses/", json=dict(SHIPPING), headers=headers)
    assert created.status_code == 201
    assert created.json()["is_default"] is True

    second = await client.post(
        "/addresses/", json=dict(SHIPPING, address_detail="Office", set_default=True), headers=headers
    )
    listed = await client.get("/addresses/", headers=headers)
    assert [a["id"] for a in listed.json() if a["is_default"]] == [second.json()["id"]]

    deleted = await client.delete(f"/addresses/{second.json()['id']}", headers=headers)
    assert deleted.json()["promoted_default_id"] == created.json()["id"]
