"""Factory for creating the Tavily search client from environment configuration."""

from config.config import Config
from utils.logger import get_logger

from .tavily_client import TavilySearchClient

logger = get_logger(__name__)


def create_search_client_from_env(config: Config | None = None) -> TavilySearchClient:
    """
    Create the Tavily search client.

    Environment variables:
        TAVILY_API_KEY: Tavily API key (required)

    Raises:
        ValueError: If TAVILY_API_KEY is not set
    """
    config = config or Config()
    if not config.TAVILY_API_KEY:
        raise ValueError("TAVILY_API_KEY not set in environment")

    logger.info("Using Tavily for web retrieval")
    return TavilySearchClient(api_key=config.TAVILY_API_KEY)
