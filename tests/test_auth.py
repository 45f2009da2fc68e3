import pytest

from .conftest import auth_headers

ALICE = {"email": "alice@farm.example.com", "password": "s3cret-pass", "nickname": "Alice"}


async def register(client, **overrides):
    return await client.post("/auth/register", json=dict(ALICE, **overrides))


@pytest.mark.asyncio
async def test_register_login_and_me(client):
    created = await register(client)
    assert created.status_code == 201
    assert created.json()["nickname"] == "Alice"

    login = await client.post(
        "/auth/login", json={"email": ALICE["email"], "password": ALICE["password"]}
    )
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == ALICE["email"]
    assert me.json()["is_admin"] is False


@pytest.mark.asyncio
async def test_wrong_password_and_bad_token(client):
    await register(client)

    bad_login = await client.post(
        "/auth/login", json={"email": ALICE["email"], "password": "nope"}
    )
    assert bad_login.status_code == 401

    bad_token = await client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert bad_token.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_email_and_nickname_conflict(client):
    await register(client)

    same_email = await register(client, nickname="Someone")
    same_nickname = await register(client, email="bob@farm.example.com", nickname="alice")

    assert same_email.status_code == 409
    assert same_nickname.status_code == 409
    assert same_nickname.json()["code"] == "conflict"


@pytest.mark.asyncio
async def test_nickname_availability_and_update(client):
    alice_id = (await register(client)).json()["id"]
    bob_id = (
        await register(client, email="bob@farm.example.com", nickname="Bob")
    ).json()["id"]

    own = await client.get(
        "/auth/nickname/available", params={"nickname": "alice"}, headers=auth_headers(alice_id)
    )
    taken = await client.get(
        "/auth/nickname/available", params={"nickname": "ALICE"}, headers=auth_headers(bob_id)
    )
    assert own.json()["available"] is True
    assert taken.json()["available"] is False

    clash = await client.put(
        "/auth/me/nickname", json={"nickname": "Alice"}, headers=auth_headers(bob_id)
    )
    assert clash.status_code == 409

    renamed = await client.put(
        "/auth/me/nickname", json={"nickname": "  Farmer Bob "}, headers=auth_headers(bob_id)
    )
    assert renamed.json()["nickname"] == "Farmer Bob"

    too_long = await client.put(
        "/auth/me/nickname", json={"nickname": "b" * 31}, headers=auth_headers(bob_id)
    )
    assert too_long.status_code == 400
