import uuid
from dataclasses import dataclass, field
from datetime import datetime

from models.search_response import SearchResponse
from utils.time_utils import utc_now


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def new_chat_id(now: datetime | None = None) -> str:
    return f"chat_{_epoch_ms(now or utc_now())}_{uuid.uuid4().hex[:9]}"


def new_message_id(now: datetime | None = None) -> str:
    return f"msg_{_epoch_ms(now or utc_now())}_{uuid.uuid4().hex[:9]}"


@dataclass
class ChatMessage:
    id: str
    query: str
    response: SearchResponse
    timestamp: datetime


@dataclass
class Chat:
    """
    One conversation thread.

    ``messages`` is append-only and non-decreasing in ``timestamp``.
    ``created_at`` never changes; ``updated_at`` moves on every append.
    """

    id: str
    title: str
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_empty(self) -> bool:
        return not self.messages

    def append(self, message: ChatMessage) -> None:
        if self.messages and message.timestamp < self.messages[-1].timestamp:
            message.timestamp = self.messages[-1].timestamp
        self.messages.append(message)
        self.updated_at = max(self.updated_at, message.timestamp)


@dataclass
class ChatHistoryState:
    chats: list[Chat] = field(default_factory=list)
    current_chat_id: str | None = None
    is_loading: bool = False

    def find(self, chat_id: str | None) -> Chat | None:
        if not chat_id:
            return None
        return next((chat for chat in self.chats if chat.id == chat_id), None)
