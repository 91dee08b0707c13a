"""
ConversationStore - multi-chat conversation history with a durable mirror.

Owns the ChatHistoryState: the ordered chats, the current-chat pointer and
the loading hint. Every mutation of the chat collection re-serializes the
whole collection into the injected storage slot.

Chat titles are synthesized asynchronously after a chat's first message.
The title task is created on the running event loop and its result is
applied on that same loop, by chat id, only if the chat still exists and
still shows the transient title. All state changes therefore happen on a
single thread.
"""

import asyncio

from context.snapshot import deserialize_chats, serialize_chats
from context.storage import ChatStorage
from context.title_synthesizer import TitleSynthesizer
from models.chat import Chat, ChatHistoryState, ChatMessage, new_chat_id, new_message_id
from models.errors import PersistenceDegraded
from models.search_response import ConversationTurn, SearchResponse
from utils.logger import get_logger
from utils.text_utils import truncate_title
from utils.time_utils import utc_now

logger = get_logger(__name__)

DEFAULT_CHAT_TITLE = "New Chat"
GENERATING_TITLE = "Generating title..."


class ConversationStore:
    """
    Manages the chat collection for a single local user.

    Chats are ordered most recently created-or-updated first. The current
    chat is a plain id reference and may point at nothing.
    """

    def __init__(self, storage: ChatStorage, title_synthesizer: TitleSynthesizer | None = None):
        """
        Args:
            storage: Durable slot for the serialized chat collection
            title_synthesizer: Title strategy; defaults to the local heuristic
        """
        self.storage = storage
        self.title_synthesizer = title_synthesizer or TitleSynthesizer()
        self.state = ChatHistoryState()
        self._title_tasks: set[asyncio.Task] = set()
        self._hydrate()

    # ---------- persistence ----------

    def _hydrate(self) -> None:
        try:
            raw = self.storage.load()
        except PersistenceDegraded as e:
            logger.warning(
                "Chat history unavailable; starting empty",
                extra={"extra_fields": {"error": e.message, "details": e.details}},
            )
            raw = None

        chats = deserialize_chats(raw)
        repaired = False
        for chat in chats:
            if chat.title == GENERATING_TITLE and chat.messages:
                first = chat.messages[0]
                chat.title = self.title_synthesizer.heuristic(first.query, first.response.answer)
                repaired = True

        self.state.chats = chats
        logger.info(f"Loaded {len(chats)} chats from storage")
        if repaired:
            self._persist()

    def _persist(self) -> None:
        try:
            self.storage.save(serialize_chats(self.state.chats))
        except PersistenceDegraded as e:
            logger.warning(
                "Failed to save chat history",
                extra={"extra_fields": {"error": e.message, "details": e.details}},
            )

    # ---------- reads ----------

    @property
    def chats(self) -> list[Chat]:
        return list(self.state.chats)

    @property
    def current_chat_id(self) -> str | None:
        return self.state.current_chat_id

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    def get_chat(self, chat_id: str) -> Chat | None:
        return self.state.find(chat_id)

    def get_current_chat(self) -> Chat | None:
        return self.state.find(self.state.current_chat_id)

    def conversation_context(self, chat_id: str | None = None) -> list[ConversationTurn]:
        """Prior turns of ``chat_id`` (default: current chat), oldest first."""
        chat = self.state.find(chat_id) if chat_id else self.get_current_chat()
        if chat is None:
            return []
        return [
            ConversationTurn(query=m.query, answer=m.response.answer) for m in chat.messages
        ]

    # ---------- mutations ----------

    def set_loading(self, is_loading: bool) -> None:
        self.state.is_loading = is_loading

    def _allocate_chat(self, first_query_hint: str | None) -> Chat:
        now = utc_now()
        hint = (first_query_hint or "").strip()
        chat = Chat(
            id=new_chat_id(now),
            title=truncate_title(hint) if hint else DEFAULT_CHAT_TITLE,
            created_at=now,
            updated_at=now,
        )
        self.state.chats.insert(0, chat)
        self.state.current_chat_id = chat.id
        return chat

    def create_new_chat(self, first_query_hint: str | None = None) -> str:
        """Create an empty chat, make it current and return its id."""
        chat = self._allocate_chat(first_query_hint)
        self._persist()
        logger.info("Chat created", extra={"extra_fields": {"chat_id": chat.id}})
        return chat.id

    def add_message_to_chat(self, query: str, response: SearchResponse) -> ChatMessage:
        """
        Append a query/response turn to the current chat.

        A missing or stale current pointer is repaired by creating a chat
        first, so the message always has a home. The first message of a chat
        kicks off title synthesis without waiting for it.
        """
        chat = self.get_current_chat()
        if chat is None:
            chat = self._allocate_chat(query)
            logger.info(
                "No current chat; created one for incoming message",
                extra={"extra_fields": {"chat_id": chat.id}},
            )

        now = utc_now()
        message = ChatMessage(id=new_message_id(now), query=query, response=response, timestamp=now)
        is_first_message = chat.is_empty
        chat.append(message)

        # Most recently updated chat goes first
        self.state.chats.remove(chat)
        self.state.chats.insert(0, chat)
        self.state.current_chat_id = chat.id

        if is_first_message:
            chat.title = GENERATING_TITLE
        self._persist()

        logger.info(
            "Message added",
            extra={
                "extra_fields": {
                    "chat_id": chat.id,
                    "message_id": message.id,
                    "message_count": len(chat.messages),
                }
            },
        )

        if is_first_message:
            self._schedule_title(chat.id, query, response.answer)
        return message

    def switch_to_chat(self, chat_id: str) -> None:
        """Point the current chat at ``chat_id``; unknown ids are allowed."""
        self.state.current_chat_id = chat_id

    def rename_chat(self, chat_id: str, title: str) -> bool:
        """Set a user-chosen title. Returns False if the chat is gone or the title is blank."""
        chat = self.state.find(chat_id)
        title = (title or "").strip()
        if chat is None or not title:
            return False
        chat.title = truncate_title(title)
        self._persist()
        return True

    def delete_chat(self, chat_id: str) -> None:
        self.state.chats = [chat for chat in self.state.chats if chat.id != chat_id]
        if self.state.current_chat_id == chat_id:
            self.state.current_chat_id = self.state.chats[0].id if self.state.chats else None
        self._persist()
        logger.info("Chat deleted", extra={"extra_fields": {"chat_id": chat_id}})

    def clear_all_chats(self) -> None:
        self.state = ChatHistoryState()
        try:
            self.storage.clear()
        except PersistenceDegraded as e:
            logger.warning(
                "Failed to erase chat history",
                extra={"extra_fields": {"error": e.message, "details": e.details}},
            )
        logger.info("Cleared all chats")

    # ---------- title synthesis ----------

    def _schedule_title(self, chat_id: str, query: str, answer: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.apply_synthesized_title(chat_id, self.title_synthesizer.heuristic(query, answer))
            return

        task = loop.create_task(self._resolve_title(chat_id, query, answer))
        self._title_tasks.add(task)
        task.add_done_callback(self._title_tasks.discard)

    async def _resolve_title(self, chat_id: str, query: str, answer: str) -> None:
        try:
            title = await self.title_synthesizer.synthesize(query, answer)
        except Exception as e:
            logger.warning(
                "Title synthesis failed; using heuristic",
                extra={"extra_fields": {"chat_id": chat_id, "error": str(e)}},
            )
            title = self.title_synthesizer.heuristic(query, answer)
        self.apply_synthesized_title(chat_id, title)

    def apply_synthesized_title(self, chat_id: str, title: str) -> bool:
        """
        Replace the transient title of ``chat_id``.

        No-op when the chat no longer exists or already has a real title.
        """
        chat = self.state.find(chat_id)
        if chat is None:
            logger.debug(f"Synthesized title dropped: chat {chat_id} no longer exists")
            return False
        if chat.title != GENERATING_TITLE:
            return False

        chat.title = truncate_title(title) or DEFAULT_CHAT_TITLE
        self._persist()
        logger.info(
            "Chat title synthesized",
            extra={"extra_fields": {"chat_id": chat_id, "title": chat.title}},
        )
        return True

    @property
    def pending_title_count(self) -> int:
        return sum(1 for task in self._title_tasks if not task.done())

    async def wait_for_pending_titles(self) -> None:
        """Wait for every outstanding title task to finish."""
        while True:
            pending = [task for task in self._title_tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def __repr__(self) -> str:
        return (
            f"ConversationStore(chats={len(self.state.chats)}, "
            f"current={self.state.current_chat_id!r})"
        )
