"""Pydantic response models (DTOs) for FastAPI endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from models.chat import Chat, ChatMessage
from models.search_response import SearchResponse
from utils.time_utils import to_iso


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SourceDTO(BaseModel):
    title: str
    url: str
    content: str
    score: float | None = None


class CitationDTO(BaseModel):
    index: int
    url: str
    title: str


class SearchResponseDTO(BaseModel):
    query: str
    answer: str
    sources: list[SourceDTO]
    citations: list[CitationDTO]

    @classmethod
    def from_search_response(cls, response: SearchResponse) -> "SearchResponseDTO":
        return cls(
            query=response.query,
            answer=response.answer,
            sources=[SourceDTO(**s.to_dict()) for s in response.sources],
            citations=[CitationDTO(**c.to_dict()) for c in response.citations],
        )


class ErrorDTO(BaseModel):
    error: str
    details: str | None = None


class ChatMessageDTO(BaseModel):
    id: str
    query: str
    response: SearchResponseDTO
    timestamp: str

    @classmethod
    def from_message(cls, message: ChatMessage) -> "ChatMessageDTO":
        return cls(
            id=message.id,
            query=message.query,
            response=SearchResponseDTO.from_search_response(message.response),
            timestamp=to_iso(message.timestamp),
        )


class ChatDTO(_CamelModel):
    id: str
    title: str
    messages: list[ChatMessageDTO]
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatDTO":
        return cls(
            id=chat.id,
            title=chat.title,
            messages=[ChatMessageDTO.from_message(m) for m in chat.messages],
            created_at=to_iso(chat.created_at),
            updated_at=to_iso(chat.updated_at),
        )


class ChatHistoryDTO(_CamelModel):
    chats: list[ChatDTO]
    current_chat_id: str | None = Field(None, alias="currentChatId")
    is_loading: bool = Field(False, alias="isLoading")


class CreateChatResponseDTO(_CamelModel):
    chat_id: str = Field(alias="chatId")


class ChatMessageResponseDTO(_CamelModel):
    chat_id: str = Field(alias="chatId")
    message: ChatMessageDTO


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
