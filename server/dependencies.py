"""FastAPI dependencies for the orchestrator and the conversation store."""

from config.config import Config
from context.conversation_store import ConversationStore
from context.storage import InMemoryChatStorage, SqliteChatStorage
from context.title_synthesizer import TitleSynthesizer
from models.errors import ConfigurationError, PersistenceDegraded
from orchestrator.core import AnswerOrchestrator, create_orchestrator_from_env
from utils.logger import get_logger

logger = get_logger(__name__)


def get_orchestrator() -> AnswerOrchestrator:
    """Dependency to get the orchestrator instance (built once, on first use)."""
    if not hasattr(get_orchestrator, "_instance"):
        try:
            get_orchestrator._instance = create_orchestrator_from_env()
        except ValueError as e:
            logger.error(f"Orchestrator unavailable: {e}")
            raise ConfigurationError("API keys not configured", details=str(e)) from e
    return get_orchestrator._instance


def _build_title_synthesizer(config: Config) -> TitleSynthesizer:
    client = None
    if config.TITLE_STRATEGY == "delegated":
        try:
            from api.factory import create_generation_client

            client = create_generation_client(config=config)
        except ValueError as e:
            logger.warning(f"Delegated titles disabled: {e}")
    return TitleSynthesizer(strategy=config.TITLE_STRATEGY, client=client)


def build_conversation_store(config: Config | None = None) -> ConversationStore:
    """Store backed by the SQLite slot, or by memory if the database can't be opened."""
    config = config or Config()
    try:
        storage = SqliteChatStorage(config.HISTORY_DB_PATH, key=config.HISTORY_STORAGE_KEY)
    except PersistenceDegraded as e:
        logger.warning(
            "Chat history will not persist this session",
            extra={"extra_fields": {"error": e.message, "details": e.details}},
        )
        storage = InMemoryChatStorage()
    return ConversationStore(storage, _build_title_synthesizer(config))


def get_conversation_store() -> ConversationStore:
    """Dependency to get the process-wide conversation store."""
    if not hasattr(get_conversation_store, "_instance"):
        get_conversation_store._instance = build_conversation_store()
    return get_conversation_store._instance
