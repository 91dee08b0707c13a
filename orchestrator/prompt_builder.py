"""Build the grounded generation request for one search query."""

from collections.abc import Sequence

from models.search_response import ConversationTurn, Source
from utils.text_utils import trim_text

CONTEXT_ANSWER_CHARS = 200

SYSTEM_INSTRUCTION_SINGLE = (
    "You are a helpful research assistant that provides accurate, well-cited answers "
    "based on search results. Always use inline citations and synthesize information "
    "from multiple sources."
)

SYSTEM_INSTRUCTION_CONVERSATION = (
    "You are a helpful research assistant that provides accurate, well-cited answers "
    "based on search results. You maintain conversation continuity and can reference "
    "previous discussions when relevant. Always use inline citations and synthesize "
    "information from multiple sources."
)


def bound_context(
    prior_turns: Sequence[ConversationTurn] | None, max_turns: int
) -> list[ConversationTurn]:
    """Keep only the most recent ``max_turns`` turns, oldest first."""
    turns = list(prior_turns or [])
    if max_turns <= 0:
        return []
    return turns[-max_turns:]


def build_system_instruction(prior_turns: Sequence[ConversationTurn]) -> str:
    return SYSTEM_INSTRUCTION_CONVERSATION if prior_turns else SYSTEM_INSTRUCTION_SINGLE


def _context_block(query: str, prior_turns: Sequence[ConversationTurn]) -> list[str]:
    lines = ["", "Previous conversation context:"]
    for idx, turn in enumerate(prior_turns, start=1):
        answer = trim_text(turn.answer, CONTEXT_ANSWER_CHARS)
        lines.append(f'{idx}. User asked: "{turn.query}"')
        lines.append(f"   Previous answer: {answer}")
    lines.append("")
    lines.append(
        "IMPORTANT: Use this conversation context to give a more relevant and connected "
        "answer. Reference previous topics when relevant, but focus on the new question: "
        f'"{query}"'
    )
    return lines


def _sources_block(sources: Sequence[Source]) -> list[str]:
    lines = ["", "Search Results:"]
    for idx, source in enumerate(sources, start=1):
        lines.append(f"[{idx}] {source.title}")
        lines.append(source.content)
        lines.append("---")
    return lines


def build_answer_prompt(
    query: str,
    sources: Sequence[Source],
    prior_turns: Sequence[ConversationTurn] | None = None,
) -> str:
    """
    Assemble the user prompt: the question, an optional recap of earlier turns,
    the numbered sources, and the answering rules.

    The source numbering here is what [n] markers in the answer refer to.
    """
    prior_turns = list(prior_turns or [])
    has_context = bool(prior_turns)

    lines = [
        "Based on the following search results, provide a comprehensive answer to the "
        f'user\'s question: "{query}"'
    ]
    if has_context:
        lines.extend(_context_block(query, prior_turns))
    lines.extend(_sources_block(sources))

    first_rule = (
        "Consider the previous conversation context and build upon it naturally"
        if has_context
        else "Synthesize information from multiple sources to provide a complete answer"
    )
    last_rule = (
        "Connect your answer to the previous conversation when relevant, showing continuity"
        if has_context
        else "Write in a clear, informative tone"
    )
    lines.extend(
        [
            "",
            "Instructions:",
            f"1. {first_rule}",
            "2. Use inline citations like [1], [2], [3] referring to the source numbers above",
            "3. Be comprehensive but concise (aim for 2-4 paragraphs)",
            "4. If sources provide conflicting information, acknowledge the disagreement",
            "5. Focus on factual accuracy and cite specific claims",
            f"6. {last_rule}",
            "",
            "Answer:",
        ]
    )
    return "\n".join(lines)
