"""Web retrieval tools for AskWeb."""

from .factory import create_search_client_from_env
from .tavily_client import TavilySearchClient

__all__ = ["TavilySearchClient", "create_search_client_from_env"]
