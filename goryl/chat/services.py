from datetime import datetime, timezone
from typing import List, Optional
from fastapi import HTTPException, status
from goryl.cache.cache_get_n_set import cache_get_or_set, invalidate
from goryl.chat.constants import CHAT_LIST_NAMESPACE, CHAT_LIST_TTL, DEFAULT_MESSAGE_LIMIT, MAX_MESSAGE_LIMIT, logger
from goryl.chat.repository import chat_by_id, chats_for_user, latest_messages, mark_incoming_read, message_by_pid
from goryl.common.utils import iso, now
from goryl.schema.full_schema import Chat, ChatMessage, Users
from goryl.users.repository import get_user_by_pid


def chat_id_for(pid_a, pid_b) -> str:
    return "_".join(sorted([str(pid_a), str(pid_b)]))


def _pid_map(chat: Chat) -> dict:
    return {chat.participant_a_id: chat.participants[0], chat.participant_b_id: chat.participants[1]}


def chat_out(chat: Chat, viewer_pid: Optional[str] = None) -> dict:
    unread = dict(chat.unread_count or {})
    out = {
        "id": chat.id,
        "participants": list(chat.participants),
        "participant_names": dict(chat.participant_names or {}),
        "last_message": chat.last_message or "",
        "last_message_time": iso(chat.last_message_time),
        "last_message_sender": chat.last_message_sender or "",
        "unread_count": unread,
        "created_at": iso(chat.created_at),
    }
    if viewer_pid is not None:
        out["unread"] = int(unread.get(viewer_pid, 0))
    return out


def message_out(m: ChatMessage, pids: dict) -> dict:
    return {
        "id": str(m.public_id),
        "chat_id": m.chat_id,
        "sender_id": pids.get(m.sender_id),
        "receiver_id": pids.get(m.receiver_id),
        "text": m.text,
        "is_read": m.is_read,
        "created_at": iso(m.created_at),
    }


def _check_participant(chat: Chat, user_pid: str):
    if str(user_pid) not in chat.participants:
        logger.warning("chat.access.denied", extra={"chat_id": chat.id, "user_public_id": str(user_pid)})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not part of this chat")


async def _chat_or_404(session, chat_id: str) -> Chat:
    chat = await chat_by_id(session, chat_id)
    if not chat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return chat


async def chat_for_participant(session, chat_id: str, user_pid: str) -> Chat:
    chat = await _chat_or_404(session, chat_id)
    _check_participant(chat, user_pid)
    return chat


async def drop_chat_lists(*user_pids):
    for pid in user_pids:
        await invalidate(CHAT_LIST_NAMESPACE, str(pid))

#--------------------------------------------------------------------------------------------------------------

async def get_chat_room(session, user_a: Users, user_b: Users) -> Chat:
    """Returns the chat between two users, creating it on first contact."""
    chat_id = chat_id_for(user_a.public_id, user_b.public_id)
    chat = await chat_by_id(session, chat_id)
    if chat:
        return chat

    first, second = sorted([user_a, user_b], key=lambda u: str(u.public_id))
    chat = Chat(
        id=chat_id,
        participant_a_id=first.id,
        participant_b_id=second.id,
        participants=[str(first.public_id), str(second.public_id)],
        participant_names={str(first.public_id): first.name or "Unknown User",
                           str(second.public_id): second.name or "Unknown User"},
        unread_count={},
    )
    session.add(chat)
    await session.flush()
    logger.info("chat.room.created", extra={"chat_id": chat_id})
    return chat


async def open_chat_room(session, user: Users, other_pid: str) -> Chat:
    other = await get_user_by_pid(session, other_pid)
    if not other:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if other.id == user.id:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="You cannot chat with yourself")
    chat = await get_chat_room(session, user, other)
    await session.commit()
    return chat


async def send_message(session, sender: Users, receiver_pid: str, text: str) -> ChatMessage:
    text = (text or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Message cannot be empty")

    receiver = await get_user_by_pid(session, receiver_pid)
    if not receiver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receiver not found")
    if receiver.id == sender.id:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="You cannot message yourself")

    chat = await get_chat_room(session, sender, receiver)
    sent_at = now()
    message = ChatMessage(chat_id=chat.id, sender_id=sender.id, receiver_id=receiver.id, text=text, created_at=sent_at)
    session.add(message)

    receiver_pid = str(receiver.public_id)
    unread = dict(chat.unread_count or {})
    unread[receiver_pid] = int(unread.get(receiver_pid, 0)) + 1
    chat.unread_count = unread
    chat.last_message = text
    chat.last_message_time = sent_at
    chat.last_message_sender = str(sender.public_id)
    session.add(chat)

    await session.commit()
    await drop_chat_lists(sender.public_id, receiver.public_id)
    logger.info("chat.message.sent", extra={"chat_id": chat.id, "message_id": str(message.public_id)})
    return message


async def get_messages(session, chat_id: str, limit: int = DEFAULT_MESSAGE_LIMIT, viewer_pid: Optional[str] = None) -> List[dict]:
    """Latest `limit` messages of a chat, oldest first."""
    chat = await _chat_or_404(session, chat_id)
    if viewer_pid is not None:
        _check_participant(chat, viewer_pid)
    limit = max(1, min(int(limit), MAX_MESSAGE_LIMIT))
    rows = await latest_messages(session, chat_id, limit)
    pids = _pid_map(chat)
    return [message_out(m, pids) for m in rows]


def _by_recent(chat: dict):
    # chats without messages sink to the bottom
    ts = chat.get("last_message_time")
    return datetime.fromisoformat(ts) if ts else datetime.min.replace(tzinfo=timezone.utc)


async def get_user_chats(session, user: Users) -> List[dict]:
    user_pid = str(user.public_id)

    async def loader():
        chats = [chat_out(c, user_pid) for c in await chats_for_user(session, user.id)]
        chats.sort(key=_by_recent, reverse=True)
        return chats

    return await cache_get_or_set(CHAT_LIST_NAMESPACE, user_pid, CHAT_LIST_TTL, loader)


async def mark_message_as_read(session, message_id: str, chat_id: str, user: Users):
    chat = await _chat_or_404(session, chat_id)
    user_pid = str(user.public_id)
    _check_participant(chat, user_pid)

    message = await message_by_pid(session, message_id)
    if not message or message.chat_id != chat.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    if message.receiver_id == user.id and not message.is_read:
        message.is_read = True
        session.add(message)

    unread = dict(chat.unread_count or {})
    unread[user_pid] = 0
    chat.unread_count = unread
    session.add(chat)
    await session.commit()
    await drop_chat_lists(user_pid)


async def mark_chat_read(session, chat_id: str, user: Users) -> int:
    chat = await _chat_or_404(session, chat_id)
    user_pid = str(user.public_id)
    _check_participant(chat, user_pid)

    marked = await mark_incoming_read(session, chat.id, user.id)
    unread = dict(chat.unread_count or {})
    unread[user_pid] = 0
    chat.unread_count = unread
    session.add(chat)
    await session.commit()
    await drop_chat_lists(user_pid)
    logger.info("chat.read", extra={"chat_id": chat.id, "marked": marked})
    return marked


async def get_unread_count(session, chat_id: str, user_pid: str) -> int:
    chat = await chat_by_id(session, chat_id)
    if not chat:
        return 0
    return int((chat.unread_count or {}).get(str(user_pid), 0))

