from typing import Optional
from sqlalchemy import or_, select, update
from goryl.common.utils import parse_uuid
from goryl.schema.full_schema import Chat, ChatMessage


async def chat_by_id(session, chat_id: str) -> Optional[Chat]:
    return await session.get(Chat, chat_id)


async def chats_for_user(session, user_id: int):
    stmt = select(Chat).where(or_(Chat.participant_a_id==user_id, Chat.participant_b_id==user_id))
    return (await session.execute(stmt)).scalars().all()


async def latest_messages(session, chat_id: str, limit: int):
    stmt = (select(ChatMessage)
            .where(ChatMessage.chat_id==chat_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit))
    rows = (await session.execute(stmt)).scalars().all()
    return list(reversed(rows))


async def message_by_pid(session, message_pid) -> Optional[ChatMessage]:
    pid = parse_uuid(message_pid)
    if pid is None:
        return None
    stmt = select(ChatMessage).where(ChatMessage.public_id==pid)
    return (await session.execute(stmt)).scalar_one_or_none()


async def mark_incoming_read(session, chat_id: str, receiver_id: int) -> int:
    stmt = (update(ChatMessage)
            .where(ChatMessage.chat_id==chat_id, ChatMessage.receiver_id==receiver_id, ChatMessage.is_read==False)
            .values(is_read=True))
    res = await session.execute(stmt)
    return res.rowcount or 0
