from dataclasses import dataclass, field
from typing import Any, Literal, Optional

FinishReason = Optional[Literal["stop", "length", "content_filter", "error"]]


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        if self.total_tokens == 0 and (self.prompt_tokens > 0 or self.completion_tokens > 0):
            object.__setattr__(self, "total_tokens", self.prompt_tokens + self.completion_tokens)


@dataclass(frozen=True)
class GenerationResult:
    """Text produced by one language-model call, plus bookkeeping for the logs."""

    text: str
    provider: str
    model: str
    latency_ms: int = 0
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    finish_reason: FinishReason = None

    def __post_init__(self):
        if self.finish_reason not in {"stop", "length", "content_filter", "error", None}:
            object.__setattr__(self, "finish_reason", None)

    def to_log_fields(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "latency_ms": self.latency_ms,
            "total_tokens": self.token_usage.total_tokens,
            "finish_reason": self.finish_reason,
        }
