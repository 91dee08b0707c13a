import time

import openai

from models.generation import GenerationResult, TokenUsage
from utils.logger import get_logger

from .base_client import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_TEMPERATURE, BaseAIClient

logger = get_logger(__name__)


class OpenAIClient(BaseAIClient):
    """
    A client for the OpenAI chat completions API.
    """

    provider = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4o-mini", **kwargs):
        """
        Initialize the OpenAI client.

        Args:
            api_key: The OpenAI API key
            model_name: The name of the model to use (default: gpt-4o-mini)
            **kwargs: Additional keyword arguments (timeout)
        """
        super().__init__(api_key, model_name=model_name, **kwargs)
        if not api_key:
            raise ValueError("API key is required for OpenAI")

        self.client = openai.OpenAI(api_key=api_key, timeout=kwargs.get("timeout", 60.0))
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
        model = kwargs.get("model", self.model_name)
        start_time = time.time()

        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
        except Exception as e:
            error = self._normalize_error(e)
            logger.error(
                f"OpenAI completion failed: {error.kind.value}",
                extra={"extra_fields": {"model": model, "error": str(e)}},
            )
            raise error from e

        choice = response.choices[0] if response.choices else None
        usage = getattr(response, "usage", None)
        result = GenerationResult(
            text=(choice.message.content if choice else None) or "",
            provider=self.provider,
            model=model,
            latency_ms=self._measure_latency(start_time),
            token_usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            ),
            finish_reason=self._normalize_finish_reason(choice.finish_reason if choice else None),
        )
        logger.info(
            "OpenAI completion successful", extra={"extra_fields": result.to_log_fields()}
        )
        return result
