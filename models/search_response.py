from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Source:
    """One retrieved web document."""

    title: str
    url: str
    content: str = ""
    score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "url": self.url, "content": self.content}
        if self.score is not None:
            data["score"] = self.score
        return data


@dataclass(frozen=True)
class Citation:
    index: int  # 1-based, matches the [n] marker in the answer
    url: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "url": self.url, "title": self.title}


@dataclass(frozen=True)
class ConversationTurn:
    """A prior (query, answer) pair handed to the orchestrator as context."""

    query: str
    answer: str


@dataclass(frozen=True)
class SearchResponse:
    query: str
    answer: str
    sources: tuple[Source, ...] = field(default_factory=tuple)
    citations: tuple[Citation, ...] = field(default_factory=tuple)

    def __post_init__(self):
        query = (self.query or "").strip()
        if not query:
            raise ValueError("SearchResponse.query must be a non-empty string")
        object.__setattr__(self, "query", query)
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "citations", tuple(self.citations))

        seen: set[int] = set()
        for citation in self.citations:
            if not 1 <= citation.index <= len(self.sources):
                raise ValueError(
                    f"Citation index {citation.index} outside 1..{len(self.sources)}"
                )
            if citation.index in seen:
                raise ValueError(f"Duplicate citation index {citation.index}")
            seen.add(citation.index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
            "citations": [c.to_dict() for c in self.citations],
        }
