import asyncio
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.chat.constants import DEFAULT_MESSAGE_LIMIT, LONG_POLL_DEFAULT_MS, LONG_POLL_MAX_MS, MAX_MESSAGE_LIMIT, MESSAGES_POLL_MS, logger
from goryl.chat.models import ChatRoomIn, SendMessageIn
from goryl.chat.repository import message_by_pid
from goryl.chat.services import (chat_for_participant, chat_out, get_messages, get_unread_count, get_user_chats,
                                 mark_chat_read, mark_message_as_read, open_chat_room, send_message)
from goryl.chat.subscriptions import subscribe_to_messages
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.users.dependencies import require_permissions
from goryl.users.repository import get_user

chat_router=APIRouter()


async def _me(request: Request, session):
    return await get_user(session, request.state.user_identifier)


def _newer_than(messages: List[dict], after: Optional[str]) -> List[dict]:
    if not after:
        return messages
    for i, m in enumerate(messages):
        if m["id"] == after:
            return messages[i + 1:]
    # `after` fell out of the window, everything in it is newer
    return messages


@chat_router.get("", dependencies=[require_permissions("chat:use")])
async def my_chats(request: Request, session: AsyncSession = Depends(get_session)):
    user = await _me(request, session)
    return success_response({"items": await get_user_chats(session, user)})


@chat_router.post("/rooms", dependencies=[require_permissions("chat:use")])
async def open_room(request: Request, payload: ChatRoomIn, session: AsyncSession = Depends(get_session)):
    user = await _me(request, session)
    chat = await open_chat_room(session, user, payload.user_id)
    return success_response(chat_out(chat, str(user.public_id)))


@chat_router.post("/messages", dependencies=[require_permissions("chat:use")])
async def post_message(request: Request, payload: SendMessageIn, session: AsyncSession = Depends(get_session)):
    sender = await _me(request, session)
    message = await send_message(session, sender, payload.receiver_id, payload.text)
    return success_response({"id": str(message.public_id), "chat_id": message.chat_id}, status_code=status.HTTP_201_CREATED)


@chat_router.get("/{chat_id}/messages", dependencies=[require_permissions("chat:use")])
async def chat_messages(request: Request, chat_id: str,
                        limit: int = Query(DEFAULT_MESSAGE_LIMIT, ge=1, le=MAX_MESSAGE_LIMIT),
                        session: AsyncSession = Depends(get_session)):
    items = await get_messages(session, chat_id, limit, viewer_pid=request.state.user_public_id)
    return success_response({"items": items})


@chat_router.get("/{chat_id}/messages/poll", dependencies=[require_permissions("chat:use")])
async def poll_messages(request: Request, chat_id: str,
                        after: Optional[str] = Query(None, description="id of the last message the client has"),
                        timeout_ms: int = Query(LONG_POLL_DEFAULT_MS, ge=0, le=LONG_POLL_MAX_MS),
                        session: AsyncSession = Depends(get_session)):
    viewer = request.state.user_public_id
    await chat_for_participant(session, chat_id, viewer)
    if after:
        last_seen = await message_by_pid(session, after)
        if not last_seen or last_seen.chat_id != chat_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    # release the connection while waiting
    await session.close()

    found = asyncio.get_running_loop().create_future()

    def on_messages(messages):
        fresh = _newer_than(messages, after)
        if fresh and not found.done():
            found.set_result(fresh)

    unsubscribe = subscribe_to_messages(chat_id, on_messages, MESSAGES_POLL_MS,
                                        session_maker=request.app.state.session_maker, viewer_pid=viewer)
    try:
        items = await asyncio.wait_for(found, timeout_ms / 1000)
        timed_out = False
    except asyncio.TimeoutError:
        items, timed_out = [], True
    finally:
        unsubscribe()

    logger.debug("chat.poll.done", extra={"chat_id": chat_id, "count": len(items), "timed_out": timed_out})
    return success_response({"items": items, "timed_out": timed_out})


@chat_router.get("/{chat_id}/unread", dependencies=[require_permissions("chat:use")])
async def chat_unread(request: Request, chat_id: str, session: AsyncSession = Depends(get_session)):
    await chat_for_participant(session, chat_id, request.state.user_public_id)
    return success_response({"unread": await get_unread_count(session, chat_id, request.state.user_public_id)})


@chat_router.post("/{chat_id}/read", dependencies=[require_permissions("chat:use")])
async def read_chat(request: Request, chat_id: str, session: AsyncSession = Depends(get_session)):
    user = await _me(request, session)
    marked = await mark_chat_read(session, chat_id, user)
    return success_response({"marked": marked})


@chat_router.post("/{chat_id}/messages/{message_id}/read", dependencies=[require_permissions("chat:use")])
async def read_message(request: Request, chat_id: str, message_id: str, session: AsyncSession = Depends(get_session)):
    user = await _me(request, session)
    await mark_message_as_read(session, message_id, chat_id, user)
    return success_response({"message": "Marked as read"})
