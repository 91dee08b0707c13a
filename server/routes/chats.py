"""Chat history endpoints backed by the process-wide ConversationStore."""

import asyncio

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from context.conversation_store import ConversationStore
from orchestrator.core import AnswerOrchestrator, validate_query
from server.dependencies import get_conversation_store, get_orchestrator
from server.schemas.requests import (
    ChatMessageRequest,
    CreateChatRequest,
    RenameChatRequest,
    SwitchChatRequest,
)
from server.schemas.responses import (
    ChatDTO,
    ChatHistoryDTO,
    ChatMessageDTO,
    ChatMessageResponseDTO,
    CreateChatResponseDTO,
    ErrorDTO,
)
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chats", tags=["Chats"])

ERROR_RESPONSES = {code: {"model": ErrorDTO} for code in (400, 401, 429, 500, 503)}


def _not_found(chat_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "Chat not found", "details": chat_id},
    )


def _history(store: ConversationStore) -> ChatHistoryDTO:
    return ChatHistoryDTO(
        chats=[ChatDTO.from_chat(chat) for chat in store.chats],
        current_chat_id=store.current_chat_id,
        is_loading=store.is_loading,
    )


def require_message_query(request: ChatMessageRequest) -> ChatMessageRequest:
    validate_query(request.query)
    return request


@router.get("", response_model=ChatHistoryDTO)
async def list_chats(store: ConversationStore = Depends(get_conversation_store)):
    """All chats, most recently updated first, plus the current-chat pointer."""
    return _history(store)


@router.post("", response_model=CreateChatResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_chat(
    request: CreateChatRequest | None = None,
    store: ConversationStore = Depends(get_conversation_store),
):
    chat_id = store.create_new_chat(request.first_query if request else None)
    return CreateChatResponseDTO(chat_id=chat_id)


@router.get("/current", response_model=ChatDTO | None)
async def current_chat(store: ConversationStore = Depends(get_conversation_store)):
    chat = store.get_current_chat()
    return ChatDTO.from_chat(chat) if chat else None


@router.put("/current", response_model=ChatHistoryDTO)
async def switch_chat(
    request: SwitchChatRequest,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Switch the current chat. Unknown ids are accepted and resolve to no chat."""
    store.switch_to_chat(request.chat_id)
    return _history(store)


@router.patch("/{chat_id}", response_model=ChatDTO)
async def rename_chat(
    chat_id: str,
    request: RenameChatRequest,
    store: ConversationStore = Depends(get_conversation_store),
):
    if not store.rename_chat(chat_id, request.title):
        return _not_found(chat_id)
    return ChatDTO.from_chat(store.get_chat(chat_id))


@router.delete("/{chat_id}", response_model=ChatHistoryDTO)
async def delete_chat(chat_id: str, store: ConversationStore = Depends(get_conversation_store)):
    store.delete_chat(chat_id)
    return _history(store)


@router.delete("", response_model=ChatHistoryDTO)
async def clear_chats(store: ConversationStore = Depends(get_conversation_store)):
    store.clear_all_chats()
    return _history(store)


@router.post("/messages", response_model=ChatMessageResponseDTO, responses=ERROR_RESPONSES)
async def send_message(
    request: ChatMessageRequest = Depends(require_message_query),
    store: ConversationStore = Depends(get_conversation_store),
    orchestrator: AnswerOrchestrator = Depends(get_orchestrator),
):
    """
    Ask a question inside the current chat.

    Prior turns of the current chat are sent as context. On failure the
    error propagates to the handler and the chat is left untouched.
    """
    query = request.query.strip()
    store.set_loading(True)
    try:
        response = await asyncio.to_thread(
            orchestrator.answer, query, store.conversation_context()
        )
    finally:
        store.set_loading(False)

    message = store.add_message_to_chat(query, response)
    return ChatMessageResponseDTO(
        chat_id=store.current_chat_id, message=ChatMessageDTO.from_message(message)
    )
