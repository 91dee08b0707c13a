import time
from abc import ABC, abstractmethod

from models.errors import UpstreamUnavailable, classify_upstream_error
from models.generation import FinishReason, GenerationResult

DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_OUTPUT_TOKENS = 1000


class BaseAIClient(ABC):
    """
    Abstract base class for language-model clients.

    Subclasses wrap one provider SDK. ``get_completion`` either returns a
    GenerationResult or raises UpstreamUnavailable carrying the failure kind
    (quota, credentials, network or generic); it never retries.
    """

    provider = "unknown"

    @abstractmethod
    def __init__(self, api_key: str, **kwargs):
        """
        Args:
            api_key: API key for the provider
            **kwargs: Provider-specific options (model_name, ...)
        """
        self.api_key = api_key
        self.model_name = kwargs.get("model_name")

    @abstractmethod
    def get_completion(
        self,
        prompt: str,
        *,
        system_instruction: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        **kwargs,
    ) -> GenerationResult:
        """
        Get a completion from the model.

        Args:
            prompt: The user prompt
            system_instruction: Optional system message steering the model
            temperature: Sampling temperature; keep low for factual answers
            max_output_tokens: Upper bound on generated tokens
            **kwargs: Extra options (model override)

        Raises:
            UpstreamUnavailable: on any provider failure
        """

    def _measure_latency(self, start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    def _normalize_error(self, exc: BaseException) -> UpstreamUnavailable:
        return UpstreamUnavailable(
            classify_upstream_error(exc), details=str(exc), provider=self.provider
        )

    def _normalize_finish_reason(self, reason) -> FinishReason:
        if reason is None:
            return None
        value = str(getattr(reason, "name", reason)).lower()
        if value in ("stop", "end_turn"):
            return "stop"
        if value in ("length", "max_tokens"):
            return "length"
        if value in ("content_filter", "safety"):
            return "content_filter"
        return None
