"""
Chat title synthesis.

Two strategies:
- heuristic: local and synchronous, derived from the first query/answer pair
- delegated: asks the language model for a title for the query, asynchronously

Neither ever raises to the caller; every failure path ends in the truncated
query.
"""

import asyncio
import re

from api.base_client import BaseAIClient
from config.config import TitleStrategy
from models.errors import TitleSynthesisFailed
from utils.logger import get_logger
from utils.text_utils import TITLE_MAX_CHARS, truncate_title

logger = get_logger(__name__)

MIN_TITLE_CHARS = 3
MAX_KEYWORDS = 4
MAX_SPAN_WORDS = 5

STOP_WORDS = frozenset(
    {
        "what", "is", "are", "was", "were", "how", "to", "do", "does", "did", "why",
        "when", "where", "who", "whom", "which", "whose", "can", "could", "should",
        "would", "will", "the", "a", "an", "and", "or", "but", "nor", "of", "in", "on",
        "for", "with", "about", "tell", "me", "explain", "please", "you", "your", "i",
        "my", "it", "its", "this", "that", "these", "those", "be", "been", "from",
        "into", "than", "then", "some", "any", "there", "vs", "versus", "compare",
        "between", "best", "top", "difference", "according",
    }
)

# Ordered: the first row whose marker appears in the lowercased query wins.
INTENT_TEMPLATES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("what is", "what are"), "What is {topic}?"),
    (("how to", "how do"), "How to {topic}"),
    (("why",), "Why {topic}?"),
    (("compare", "vs"), "{topic} comparison"),
    (("best", "top"), "Best {topic} options"),
)

_CAPITALIZED_SPAN = re.compile(r"\b[A-Z][A-Za-z0-9'&-]*(?:[ \t]+[A-Z][A-Za-z0-9'&-]*)+")
_QUOTED_SPAN = re.compile(r"[\"“]([^\"“”\n]{3,60})[\"”]")
_WORD = re.compile(r"[A-Za-z0-9][A-Za-z0-9'+#-]*")
_LEADING_INTERROGATIVE = re.compile(
    r"^(?:(?:can|could) you\s+|please\s+|tell me about\s+|explain\s+)?"
    r"(?:(?:what|how|why|when|where|who|which)\s+"
    r"(?:is|are|was|were|do|does|did|to|can|should|would)?\s*)?",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = re.compile(r"[\s?.!,;:]+$")


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def _significant_words(text: str) -> list[str]:
    return [w for w in _WORD.findall(text) if len(w) > 2 and w.lower() not in STOP_WORDS]


def _proper_noun_candidate(query: str, answer: str) -> str:
    query_words = {w.lower() for w in _significant_words(query)}
    spans = []
    for match in _CAPITALIZED_SPAN.finditer(answer):
        words = match.group(0).split()
        while words and words[0].lower() in STOP_WORDS:
            words.pop(0)
        if len(words) >= 2:
            spans.append(words[:MAX_SPAN_WORDS])

    for words in spans:
        if query_words.intersection(w.lower() for w in words):
            return " ".join(words)
    return " ".join(spans[0]) if spans else ""


def _keyword_candidate(query: str) -> str:
    keywords: list[str] = []
    for word in _significant_words(query):
        if word.lower() not in (k.lower() for k in keywords):
            keywords.append(word)
    return " ".join(_capitalize(w) for w in keywords[:MAX_KEYWORDS])


def _quoted_candidate(answer: str) -> str:
    match = _QUOTED_SPAN.search(answer)
    return match.group(1).strip() if match else ""


def _cleaned_query_candidate(query: str) -> str:
    cleaned = _LEADING_INTERROGATIVE.sub("", query.strip(), count=1)
    cleaned = _TRAILING_PUNCTUATION.sub("", cleaned)
    return _capitalize(cleaned.strip())


def _intent_template(query: str) -> str:
    lowered = query.lower()
    for markers, template in INTENT_TEMPLATES:
        if any(marker in lowered for marker in markers):
            return template
    return "{topic}"


def generate_heuristic_title(query: str, answer: str = "") -> str:
    """
    Derive a short chat title from the first query and its answer.

    Pure and total: any internal failure yields the truncated query.
    """
    query = query or ""
    try:
        candidates = (
            _proper_noun_candidate(query, answer or ""),
            _keyword_candidate(query),
            _quoted_candidate(answer or ""),
            _cleaned_query_candidate(query),
        )
        topic = next((c for c in candidates if c), "")
        title = truncate_title(_intent_template(query).format(topic=topic)) if topic else ""
    except Exception as e:
        logger.warning(f"Heuristic title generation failed: {e}")
        return truncate_title(query)

    if len(title) < MIN_TITLE_CHARS:
        return truncate_title(query)
    return title


class DelegatedTitleSynthesizer:
    """Ask the language model for a title; fall back to the truncated query."""

    def __init__(self, client: BaseAIClient, max_output_tokens: int = 20):
        self.client = client
        self.max_output_tokens = max_output_tokens

    def _request_title(self, query: str) -> str:
        prompt = (
            "Generate a short, descriptive title (at most 6 words) for a conversation "
            f'that starts with this question: "{query}". '
            "Reply with the title only."
        )
        try:
            result = self.client.get_completion(
                prompt, temperature=0.3, max_output_tokens=self.max_output_tokens
            )
        except Exception as e:
            raise TitleSynthesisFailed("Title request failed", details=str(e)) from e

        lines = (result.text or "").strip().splitlines()
        title = lines[0] if lines else ""
        title = re.sub(r"^title:\s*", "", title.strip(), flags=re.IGNORECASE)
        title = title.strip().strip("\"'“”*#").strip()
        if not title:
            raise TitleSynthesisFailed("Provider returned an empty title")
        return truncate_title(title)

    async def synthesize(self, query: str) -> str:
        try:
            return await asyncio.to_thread(self._request_title, query)
        except TitleSynthesisFailed as e:
            logger.warning(
                "Delegated title synthesis failed, using query",
                extra={"extra_fields": {"error": e.message, "details": e.details}},
            )
            return truncate_title(query, TITLE_MAX_CHARS)


class TitleSynthesizer:
    """Strategy selector used by the conversation store."""

    def __init__(self, strategy: str = TitleStrategy.HEURISTIC.value, client: BaseAIClient | None = None):
        strategy = (strategy or "").lower()
        if strategy == TitleStrategy.DELEGATED.value and client is None:
            logger.warning("Delegated title strategy requested without a client; using heuristic")
            strategy = TitleStrategy.HEURISTIC.value
        if strategy not in (TitleStrategy.HEURISTIC.value, TitleStrategy.DELEGATED.value):
            strategy = TitleStrategy.HEURISTIC.value

        self.strategy = strategy
        self._delegated = DelegatedTitleSynthesizer(client) if client is not None else None

    def heuristic(self, query: str, answer: str = "") -> str:
        return generate_heuristic_title(query, answer)

    async def synthesize(self, query: str, answer: str = "") -> str:
        if self.strategy == TitleStrategy.DELEGATED.value and self._delegated is not None:
            return await self._delegated.synthesize(query)
        return self.heuristic(query, answer)
