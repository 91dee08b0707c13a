"""Pydantic request models for FastAPI endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from models.search_response import ConversationTurn


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConversationMessage(BaseModel):
    query: str
    answer: str

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(query=self.query, answer=self.answer)


class SearchRequest(_CamelModel):
    # Blank queries are rejected by the orchestrator with InvalidInput
    query: str | None = None
    conversation_context: list[ConversationMessage] | None = Field(
        None, alias="conversationContext"
    )


class CreateChatRequest(_CamelModel):
    first_query: str | None = Field(None, alias="firstQuery")


class SwitchChatRequest(_CamelModel):
    chat_id: str = Field(..., alias="chatId")


class RenameChatRequest(BaseModel):
    # Stripped before the length check, so a blank title is a 400
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)


class ChatMessageRequest(BaseModel):
    query: str | None = None
