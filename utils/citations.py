"""Resolve inline [n] citation markers in a generated answer against its sources."""

import re
from collections.abc import Sequence

from models.search_response import Citation, Source
from utils.logger import get_logger

logger = get_logger(__name__)

CITATION_PATTERN = re.compile(r"\[(-?\d+)\]")


def extract_citations(answer: str, sources: Sequence[Source]) -> list[Citation]:
    """
    Collect the distinct citation markers in ``answer`` that point at a source.

    Markers are kept in order of first appearance. A marker outside
    1..len(sources) is the model citing something it was never given; it is
    dropped, not treated as an error.
    """
    citations: list[Citation] = []
    seen: set[int] = set()
    dropped: list[int] = []

    for match in CITATION_PATTERN.finditer(answer or ""):
        number = int(match.group(1))
        if number in seen:
            continue
        seen.add(number)

        if not 1 <= number <= len(sources):
            dropped.append(number)
            continue

        source = sources[number - 1]
        citations.append(Citation(index=number, url=source.url, title=source.title))

    if dropped:
        logger.debug(
            "Dropped out-of-range citation markers",
            extra={"extra_fields": {"markers": dropped, "source_count": len(sources)}},
        )
    return citations
