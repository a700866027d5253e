import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional
from goryl.chat.constants import DEFAULT_MESSAGE_LIMIT, MESSAGES_POLL_MS, USER_CHATS_POLL_MS, logger
from goryl.chat.services import get_messages, get_user_chats
from goryl.db.connection import async_session
from goryl.users.repository import get_user


class PollingSubscription:
    """Calls `fetch` every `poll_interval_ms` and hands the result to `callback` until stopped.

    A failing poll is logged and the next one still runs.
    """

    def __init__(self, name: str, fetch: Callable[[], Awaitable[Any]], callback: Callable[[Any], Any], poll_interval_ms: int):
        self.name = name
        self._fetch = fetch
        self._callback = callback
        self._interval = max(poll_interval_ms, 10) / 1000
        self._active = False
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> Callable[[], None]:
        self._active = True
        self._task = asyncio.create_task(self._run(), name=f"poll:{self.name}")
        logger.debug("chat.subscription.started", extra={"subscription": self.name})
        return self.stop

    async def _poll_once(self):
        result = await self._fetch()
        if not self._active:
            return
        out = self._callback(result)
        if inspect.isawaitable(out):
            await out

    async def _run(self):
        while self._active:
            try:
                await self._poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("chat.subscription.poll_failed", extra={"subscription": self.name, "error": str(e)})
            if not self._active:
                break
            await asyncio.sleep(self._interval)

    def stop(self):
        if not self._active:
            return
        self._active = False
        if self._task and not self._task.done():
            self._task.cancel()
        logger.debug("chat.subscription.stopped", extra={"subscription": self.name})


def subscribe_to_messages(chat_id: str, callback, poll_interval_ms: int = MESSAGES_POLL_MS, *,
                          session_maker=None, viewer_pid: Optional[str] = None,
                          limit: int = DEFAULT_MESSAGE_LIMIT) -> Callable[[], None]:
    session_maker = session_maker or async_session

    async def fetch():
        async with session_maker() as session:
            return await get_messages(session, chat_id, limit, viewer_pid=viewer_pid)

    return PollingSubscription(f"messages:{chat_id}", fetch, callback, poll_interval_ms).start()


def subscribe_to_user_chats(user_id: int, callback, poll_interval_ms: int = USER_CHATS_POLL_MS, *,
                            session_maker=None) -> Callable[[], None]:
    session_maker = session_maker or async_session

    async def fetch():
        async with session_maker() as session:
            user = await get_user(session, user_id)
            if user is None:
                return []
            return await get_user_chats(session, user)

    return PollingSubscription(f"chats:{user_id}", fetch, callback, poll_interval_ms).start()
