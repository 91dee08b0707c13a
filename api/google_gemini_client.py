import time

from google import genai

from models.generation import GenerationResult, TokenUsage
from utils.logger import get_logger

from .base_client import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_TEMPERATURE, BaseAIClient

logger = get_logger(__name__)


class GeminiClient(BaseAIClient):
    """
    A client for the Google Gemini API using the google.genai package.
    """

    provider = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash-lite", **kwargs):
        """
        Initialize the Gemini client.

        Args:
            api_key: The Google Gemini API key
            model_name: The name of the model to use (default: gemini-2.5-flash-lite)
            **kwargs: Additional keyword arguments
        """
        super().__init__(api_key, model_name=model_name, **kwargs)

        if not api_key:
            raise ValueError("API key is required for Gemini")

        self.client = genai.Client(api_key=api_key)
        self.model_name = model_name

    def get_completion(
        self,
        prompt: str,
        *,
        system_instruction: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        **kwargs,
    ) -> GenerationResult:
        model_name = kwargs.get("model", self.model_name)
        start_time = time.time()

        config = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }
        if system_instruction:
            config["system_instruction"] = system_instruction

        try:
            response = self.client.models.generate_content(
                model=model_name,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            error = self._normalize_error(e)
            logger.error(
                f"Gemini completion failed: {error.kind.value}",
                extra={"extra_fields": {"model": model_name, "error": str(e)}},
            )
            raise error from e

        usage_metadata = getattr(response, "usage_metadata", None)
        candidates = getattr(response, "candidates", None) or []
        finish_reason = getattr(candidates[0], "finish_reason", None) if candidates else None

        result = GenerationResult(
            text=getattr(response, "text", None) or "",
            provider=self.provider,
            model=model_name,
            latency_ms=self._measure_latency(start_time),
            token_usage=TokenUsage(
                prompt_tokens=getattr(usage_metadata, "prompt_token_count", 0) or 0,
                completion_tokens=getattr(usage_metadata, "candidates_token_count", 0) or 0,
                total_tokens=getattr(usage_metadata, "total_token_count", 0) or 0,
            ),
            finish_reason=self._normalize_finish_reason(finish_reason),
        )
        logger.info(
            "Gemini completion successful", extra={"extra_fields": result.to_log_fields()}
        )
        return result
