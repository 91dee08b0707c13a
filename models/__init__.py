"""
Models package: search responses, chats and the error taxonomy.
"""

from .chat import Chat, ChatHistoryState, ChatMessage
from .errors import (
    AskWebError,
    ConfigurationError,
    InvalidInput,
    PersistenceDegraded,
    TitleSynthesisFailed,
    UpstreamErrorKind,
    UpstreamUnavailable,
)
from .generation import GenerationResult, TokenUsage
from .search_response import Citation, ConversationTurn, SearchResponse, Source

__all__ = [
    "AskWebError",
    "Chat",
    "ChatHistoryState",
    "ChatMessage",
    "Citation",
    "ConfigurationError",
    "ConversationTurn",
    "GenerationResult",
    "InvalidInput",
    "PersistenceDegraded",
    "SearchResponse",
    "Source",
    "TitleSynthesisFailed",
    "TokenUsage",
    "UpstreamErrorKind",
    "UpstreamUnavailable",
]
