"""Create the configured generation client from environment settings."""

from config.config import Config, ModelType
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


def create_generation_client(
    model_type: str | None = None,
    model_name: str | None = None,
    config: Config | None = None,
) -> BaseAIClient:
    """
    Initialize the generation client for ``model_type`` (defaults to MODEL_TYPE).

    Raises:
        ValueError: If the model type is unsupported or its API key is missing
    """
    config = config or Config()
    model_type = (model_type or config.MODEL_TYPE or "").lower().strip()

    if model_type == ModelType.OPENAI.value:
        from api.openai_client import OpenAIClient

        if not config.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY not found in environment variables")
        model_name = model_name or config.DEFAULT_OPENAI_MODEL
        client: BaseAIClient = OpenAIClient(api_key=config.OPENAI_API_KEY, model_name=model_name)

    elif model_type == ModelType.GEMINI.value:
        from api.google_gemini_client import GeminiClient

        if not config.GOOGLE_GEMINI_API_KEY:
            raise ValueError("GOOGLE_GEMINI_API_KEY not found in environment variables")
        model_name = model_name or config.DEFAULT_GEMINI_MODEL
        client = GeminiClient(api_key=config.GOOGLE_GEMINI_API_KEY, model_name=model_name)

    else:
        raise ValueError(f"Unsupported MODEL_TYPE: {model_type}. Must be 'openai' or 'gemini'")

    logger.info(f"Initialized {model_type} generation client with model: {model_name}")
    return client
