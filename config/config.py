import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from utils.logger import get_logger

logger = get_logger(__name__)


class ModelType(Enum):
    """Supported generation providers."""
    OPENAI = "openai"
    GEMINI = "gemini"


class TitleStrategy(Enum):
    HEURISTIC = "heuristic"
    DELEGATED = "delegated"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default


class Config:
    """Configuration management for the application."""

    def __init__(self):
        """Initialize configuration from the environment (and .env if present)."""
        env_path = Path(__file__).parent.parent / '.env'
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        # API Configuration
        self.OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
        self.GOOGLE_GEMINI_API_KEY = os.getenv('GOOGLE_GEMINI_API_KEY')
        self.TAVILY_API_KEY = os.getenv('TAVILY_API_KEY')

        # Model Configuration
        self.MODEL_TYPE = os.getenv('MODEL_TYPE', ModelType.OPENAI.value).lower()
        self.DEFAULT_OPENAI_MODEL = os.getenv('DEFAULT_OPENAI_MODEL', 'gpt-4o-mini')
        self.DEFAULT_GEMINI_MODEL = os.getenv('DEFAULT_GEMINI_MODEL', 'gemini-2.5-flash-lite')

        if self.MODEL_TYPE == ModelType.GEMINI.value:
            self.DEFAULT_MODEL = self.DEFAULT_GEMINI_MODEL
        else:
            self.DEFAULT_MODEL = self.DEFAULT_OPENAI_MODEL

        # Retrieval / context
        self.SEARCH_MAX_RESULTS = _int_env('SEARCH_MAX_RESULTS', 8)
        self.SEARCH_DEPTH = os.getenv('SEARCH_DEPTH', 'basic')
        self.MAX_CONTEXT_TURNS = _int_env('MAX_CONTEXT_TURNS', 5)

        # Chat history
        self.TITLE_STRATEGY = os.getenv('TITLE_STRATEGY', TitleStrategy.DELEGATED.value).lower()
        self.HISTORY_DB_PATH = os.getenv('HISTORY_DB_PATH', 'askweb_history.db')
        self.HISTORY_STORAGE_KEY = os.getenv('HISTORY_STORAGE_KEY', 'chat_history')

    def validate(self) -> bool:
        """
        Check that the keys needed by the selected provider and by search are present.

        Returns:
            bool: True if configuration is valid, False otherwise
        """
        valid_types = [e.value for e in ModelType]
        if self.MODEL_TYPE not in valid_types:
            logger.error(f"Unknown MODEL_TYPE '{self.MODEL_TYPE}'. Must be one of: {', '.join(valid_types)}")
            return False

        missing = []
        if self.MODEL_TYPE == ModelType.OPENAI.value and not self.OPENAI_API_KEY:
            missing.append('OPENAI_API_KEY')
        if self.MODEL_TYPE == ModelType.GEMINI.value and not self.GOOGLE_GEMINI_API_KEY:
            missing.append('GOOGLE_GEMINI_API_KEY')
        if not self.TAVILY_API_KEY:
            missing.append('TAVILY_API_KEY')

        if missing:
            logger.error(f"Missing configuration: {', '.join(missing)}")
            return False

        if self.TITLE_STRATEGY not in [e.value for e in TitleStrategy]:
            logger.warning(f"Unknown TITLE_STRATEGY '{self.TITLE_STRATEGY}', falling back to heuristic")
            self.TITLE_STRATEGY = TitleStrategy.HEURISTIC.value

        return True

    def get_model_info(self) -> str:
        """
        Returns:
            str: Formatted string with model information
        """
        if self.MODEL_TYPE == ModelType.OPENAI.value:
            return f"OpenAI ({self.DEFAULT_MODEL})"
        elif self.MODEL_TYPE == ModelType.GEMINI.value:
            return f"Google Gemini ({self.DEFAULT_MODEL})"
        return "Unknown"
