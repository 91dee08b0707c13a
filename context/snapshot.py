"""
Serialized form of the chat collection.

The durable slot holds one JSON array of chats with camelCase keys and
ISO-8601 UTC timestamps. Loading validates the whole document against the
pydantic schema below and fails closed: anything malformed is treated as
an empty history.
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from models.chat import Chat, ChatMessage
from models.search_response import Citation, SearchResponse, Source
from utils.logger import get_logger
from utils.time_utils import ensure_utc, to_iso

logger = get_logger(__name__)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SourceRecord(_Record):
    title: str
    url: str
    content: str = ""
    score: float | None = None


class CitationRecord(_Record):
    index: int
    url: str
    title: str


class SearchResponseRecord(_Record):
    query: str
    answer: str
    sources: list[SourceRecord] = Field(default_factory=list)
    citations: list[CitationRecord] = Field(default_factory=list)


class ChatMessageRecord(_Record):
    id: str
    query: str
    response: SearchResponseRecord
    timestamp: datetime


class ChatRecord(_Record):
    id: str
    title: str
    messages: list[ChatMessageRecord] = Field(default_factory=list)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


_SNAPSHOT_ADAPTER = TypeAdapter(list[ChatRecord])


def _response_to_record(response: SearchResponse) -> SearchResponseRecord:
    return SearchResponseRecord(
        query=response.query,
        answer=response.answer,
        sources=[SourceRecord(**s.to_dict()) for s in response.sources],
        citations=[CitationRecord(**c.to_dict()) for c in response.citations],
    )


def _record_to_response(record: SearchResponseRecord) -> SearchResponse:
    return SearchResponse(
        query=record.query,
        answer=record.answer,
        sources=tuple(Source(**s.model_dump()) for s in record.sources),
        citations=tuple(Citation(**c.model_dump()) for c in record.citations),
    )


def _chat_to_payload(chat: Chat) -> dict:
    return {
        "id": chat.id,
        "title": chat.title,
        "messages": [
            {
                "id": message.id,
                "query": message.query,
                "response": _response_to_record(message.response).model_dump(),
                "timestamp": to_iso(message.timestamp),
            }
            for message in chat.messages
        ],
        "createdAt": to_iso(chat.created_at),
        "updatedAt": to_iso(chat.updated_at),
    }


def serialize_chats(chats: list[Chat]) -> str:
    return json.dumps([_chat_to_payload(chat) for chat in chats], ensure_ascii=False)


def deserialize_chats(raw: str | None) -> list[Chat]:
    """
    Rebuild chats from a snapshot string.

    Returns an empty list for a missing, unparsable or schema-invalid
    snapshot, logging the reason instead of raising.
    """
    if not raw:
        return []

    try:
        records = _SNAPSHOT_ADAPTER.validate_json(raw)
        chats = [
            Chat(
                id=record.id,
                title=record.title,
                messages=[
                    ChatMessage(
                        id=m.id,
                        query=m.query,
                        response=_record_to_response(m.response),
                        timestamp=ensure_utc(m.timestamp),
                    )
                    for m in record.messages
                ],
                created_at=ensure_utc(record.created_at),
                updated_at=ensure_utc(record.updated_at),
            )
            for record in records
        ]
    except (ValidationError, ValueError, TypeError) as e:
        logger.warning(
            "Failed to load chat history; starting empty",
            extra={"extra_fields": {"error": str(e)[:500], "error_type": type(e).__name__}},
        )
        return []

    for chat in chats:
        chat.messages.sort(key=lambda m: m.timestamp)
    return chats
