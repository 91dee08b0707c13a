"""
AnswerOrchestrator - retrieval, grounded generation and citation extraction.

Key guarantees:
- A blank query is rejected before any upstream call
- Upstream failures surface immediately as UpstreamUnavailable (no retries)
- The caller gets either a complete SearchResponse or an exception
"""

import time
from collections.abc import Sequence

from api.base_client import BaseAIClient
from config.config import Config
from models.errors import InvalidInput
from models.search_response import ConversationTurn, SearchResponse
from orchestrator.prompt_builder import (
    bound_context,
    build_answer_prompt,
    build_system_instruction,
)
from tools.web.tavily_client import DEFAULT_MAX_RESULTS, DEFAULT_SEARCH_DEPTH
from utils.citations import extract_citations
from utils.logger import get_logger

logger = get_logger(__name__)

ANSWER_TEMPERATURE = 0.3
ANSWER_MAX_OUTPUT_TOKENS = 1000
EMPTY_ANSWER_TEXT = "Unable to generate response"


def validate_query(query) -> str:
    """Return the trimmed query or raise InvalidInput."""
    if not isinstance(query, str) or not query.strip():
        raise InvalidInput("Query is required and must be a non-empty string")
    return query.strip()


class AnswerOrchestrator:
    def __init__(
        self,
        search_client,
        generation_client: BaseAIClient,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        search_depth: str = DEFAULT_SEARCH_DEPTH,
        max_context_turns: int = 5,
    ):
        """
        Args:
            search_client: Anything with ``search(query, max_results, search_depth)``
                returning a list of Source
            generation_client: Language-model client
            max_results: Retrieval cap per query
            search_depth: Tavily search depth
            max_context_turns: Most recent prior turns forwarded to the model
        """
        self.search_client = search_client
        self.generation_client = generation_client
        self.max_results = max_results
        self.search_depth = search_depth
        self.max_context_turns = max_context_turns

    def answer(
        self, query: str, prior_turns: Sequence[ConversationTurn] | None = None
    ) -> SearchResponse:
        """
        Answer ``query`` from fresh web results, optionally continuing a conversation.

        Raises:
            InvalidInput: query is empty or whitespace
            UpstreamUnavailable: retrieval or generation failed
        """
        query = validate_query(query)
        turns = bound_context(prior_turns, self.max_context_turns)
        start = time.time()

        sources = self.search_client.search(
            query, max_results=self.max_results, search_depth=self.search_depth
        )

        prompt = build_answer_prompt(query, sources, turns)
        result = self.generation_client.get_completion(
            prompt,
            system_instruction=build_system_instruction(turns),
            temperature=ANSWER_TEMPERATURE,
            max_output_tokens=ANSWER_MAX_OUTPUT_TOKENS,
        )
        answer = result.text.strip() or EMPTY_ANSWER_TEXT

        citations = extract_citations(answer, sources)
        response = SearchResponse(
            query=query, answer=answer, sources=tuple(sources), citations=tuple(citations)
        )

        logger.info(
            "Answer synthesized",
            extra={
                "extra_fields": {
                    "source_count": len(sources),
                    "citation_count": len(citations),
                    "context_turns": len(turns),
                    "elapsed_ms": int((time.time() - start) * 1000),
                    **result.to_log_fields(),
                }
            },
        )
        return response


def create_orchestrator_from_env(config: Config | None = None) -> AnswerOrchestrator:
    """
    Wire the Tavily and generation clients from environment configuration.

    Raises:
        ValueError: If a required API key is missing
    """
    from api.factory import create_generation_client
    from tools.web.factory import create_search_client_from_env

    config = config or Config()
    return AnswerOrchestrator(
        search_client=create_search_client_from_env(config),
        generation_client=create_generation_client(config=config),
        max_results=config.SEARCH_MAX_RESULTS,
        search_depth=config.SEARCH_DEPTH,
        max_context_turns=config.MAX_CONTEXT_TURNS,
    )
