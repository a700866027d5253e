import asyncio
import pytest
from goryl.chat.services import chat_id_for
from goryl.chat.subscriptions import PollingSubscription, subscribe_to_messages, subscribe_to_user_chats
from goryl.users.repository import get_user_by_pid

url_prefix="/api/v1"


def _message(resp):
    return resp.json()["error"]["details"]["message"]


async def _send(ac, sender, receiver, text):
    resp = await ac.post(f"{url_prefix}/chats/messages", headers=sender.headers, json={"receiver_id": receiver.id, "text": text})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_chat_id_is_order_independent():
    assert chat_id_for("b-id", "a-id") == chat_id_for("a-id", "b-id") == "a-id_b-id"


@pytest.mark.asyncio
async def test_conversation_roundtrip(ac_client, buyer, seller):
    sent = await _send(ac_client, buyer, seller, "  Is the shawl available in blue?  ")
    chat_id = sent["chat_id"]
    assert chat_id == chat_id_for(buyer.id, seller.id)
    await _send(ac_client, seller, buyer, "Yes, two left")
    await _send(ac_client, buyer, seller, "Great, ordering now")

    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/messages", headers=seller.headers)
    items = resp.json()["data"]["items"]
    assert [m["text"] for m in items] == ["Is the shawl available in blue?", "Yes, two left", "Great, ordering now"]
    assert items[0]["sender_id"] == buyer.id
    assert items[0]["receiver_id"] == seller.id
    assert items[0]["is_read"] is False

    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/messages", headers=seller.headers, params={"limit": 2})
    assert [m["text"] for m in resp.json()["data"]["items"]] == ["Yes, two left", "Great, ordering now"]

    resp = await ac_client.get(f"{url_prefix}/chats", headers=seller.headers)
    chats = resp.json()["data"]["items"]
    assert len(chats) == 1
    assert chats[0]["last_message"] == "Great, ordering now"
    assert chats[0]["last_message_sender"] == buyer.id
    assert chats[0]["unread"] == 2
    assert chats[0]["participant_names"][buyer.id] == "Bilal Buyer"

    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/unread", headers=buyer.headers)
    assert resp.json()["data"]["unread"] == 1

    resp = await ac_client.post(f"{url_prefix}/chats/{chat_id}/read", headers=seller.headers)
    assert resp.json()["data"]["marked"] == 2
    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/unread", headers=seller.headers)
    assert resp.json()["data"]["unread"] == 0

    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/messages", headers=buyer.headers)
    incoming = [m for m in resp.json()["data"]["items"] if m["receiver_id"] == seller.id]
    assert all(m["is_read"] for m in incoming)


@pytest.mark.asyncio
async def test_mark_single_message(ac_client, buyer, seller):
    sent = await _send(ac_client, seller, buyer, "Your parcel shipped")
    chat_id = sent["chat_id"]

    resp = await ac_client.post(f"{url_prefix}/chats/{chat_id}/messages/{sent['id']}/read", headers=buyer.headers)
    assert resp.status_code == 200

    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/messages", headers=buyer.headers)
    assert resp.json()["data"]["items"][0]["is_read"] is True
    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/unread", headers=buyer.headers)
    assert resp.json()["data"]["unread"] == 0

    resp = await ac_client.post(f"{url_prefix}/chats/{chat_id}/messages/0190a1b2-0000-7000-8000-000000000000/read",
                                headers=buyer.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_send_rules(ac_client, buyer, seller):
    resp = await ac_client.post(f"{url_prefix}/chats/messages", headers=buyer.headers, json={"receiver_id": seller.id, "text": "   "})
    assert resp.status_code == 422
    assert _message(resp) == "Message cannot be empty"

    resp = await ac_client.post(f"{url_prefix}/chats/messages", headers=buyer.headers, json={"receiver_id": buyer.id, "text": "hi"})
    assert resp.status_code == 422

    resp = await ac_client.post(f"{url_prefix}/chats/messages", headers=buyer.headers,
                                json={"receiver_id": "0190a1b2-0000-7000-8000-000000000000", "text": "hi"})
    assert resp.status_code == 404
    assert _message(resp) == "Receiver not found"


@pytest.mark.asyncio
async def test_outsiders_are_kept_out(ac_client, buyer, seller, register):
    outsider = await register("nosy@goryl.pk")
    chat_id = (await _send(ac_client, buyer, seller, "private"))["chat_id"]

    resp = await ac_client.get(f"{url_prefix}/chats/{chat_id}/messages", headers=outsider.headers)
    assert resp.status_code == 403
    assert _message(resp) == "You are not part of this chat"

    resp = await ac_client.post(f"{url_prefix}/chats/{chat_id}/read", headers=outsider.headers)
    assert resp.status_code == 403

    resp = await ac_client.get(f"{url_prefix}/chats/nobody_here/messages", headers=buyer.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_open_room_before_first_message(ac_client, buyer, seller):
    resp = await ac_client.post(f"{url_prefix}/chats/rooms", headers=buyer.headers, json={"user_id": seller.id})
    assert resp.status_code == 200
    room = resp.json()["data"]
    assert room["id"] == chat_id_for(buyer.id, seller.id)
    assert room["last_message"] == ""
    assert room["unread"] == 0

    # opening again returns the same room
    resp = await ac_client.post(f"{url_prefix}/chats/rooms", headers=seller.headers, json={"user_id": buyer.id})
    assert resp.json()["data"]["id"] == room["id"]

    resp = await ac_client.post(f"{url_prefix}/chats/rooms", headers=buyer.headers, json={"user_id": buyer.id})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_long_poll(ac_client, buyer, seller):
    first = await _send(ac_client, buyer, seller, "first")
    chat_id = first["chat_id"]
    poll = f"{url_prefix}/chats/{chat_id}/messages/poll"

    resp = await ac_client.get(poll, headers=seller.headers, params={"after": first["id"], "timeout_ms": 50})
    assert resp.json()["data"] == {"items": [], "timed_out": True}

    second = await _send(ac_client, buyer, seller, "second")
    resp = await ac_client.get(poll, headers=seller.headers, params={"after": first["id"], "timeout_ms": 5000})
    data = resp.json()["data"]
    assert data["timed_out"] is False
    assert [m["id"] for m in data["items"]] == [second["id"]]

    resp = await ac_client.get(poll, headers=seller.headers, params={"after": "0190a1b2-0000-7000-8000-000000000000"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_subscriptions_push_updates(app, ac_client, buyer, seller):
    chat_id = (await _send(ac_client, buyer, seller, "hello"))["chat_id"]
    async with app.state.session_maker() as session:
        seller_pk = (await get_user_by_pid(session, seller.id)).id

    seen_messages = asyncio.Queue()
    seen_chats = asyncio.Queue()
    stop_messages = subscribe_to_messages(chat_id, seen_messages.put_nowait, 20,
                                          session_maker=app.state.session_maker, viewer_pid=seller.id)
    stop_chats = subscribe_to_user_chats(seller_pk, seen_chats.put_nowait, 20, session_maker=app.state.session_maker)
    try:
        messages = await asyncio.wait_for(seen_messages.get(), 2)
        assert [m["text"] for m in messages] == ["hello"]
        chats = await asyncio.wait_for(seen_chats.get(), 2)
        assert [c["id"] for c in chats] == [chat_id]

        await _send(ac_client, buyer, seller, "still there?")
        while True:
            messages = await asyncio.wait_for(seen_messages.get(), 2)
            if len(messages) == 2:
                break
        assert messages[-1]["text"] == "still there?"
    finally:
        stop_messages()
        stop_chats()


@pytest.mark.asyncio
async def test_polling_survives_a_failed_fetch():
    calls = []

    async def fetch():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("db went away")
        return len(calls)

    got = asyncio.Event()
    results = []

    async def callback(value):
        results.append(value)
        got.set()

    sub = PollingSubscription("flaky", fetch, callback, 10)
    stop = sub.start()
    await asyncio.wait_for(got.wait(), 2)
    stop()
    assert sub.active is False
    assert results[0] == 2

    # stopping twice is harmless
    stop()
