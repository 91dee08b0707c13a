"""Stateless search endpoint: query (+ optional prior turns) in, cited answer out."""

import asyncio

from fastapi import APIRouter, Depends

from orchestrator.core import AnswerOrchestrator, validate_query
from server.dependencies import get_orchestrator
from server.schemas.requests import SearchRequest
from server.schemas.responses import ErrorDTO, SearchResponseDTO

router = APIRouter(prefix="/api", tags=["Search"])

ERROR_RESPONSES = {code: {"model": ErrorDTO} for code in (400, 401, 429, 500, 503)}


def require_query(request: SearchRequest) -> SearchRequest:
    # Declared before the orchestrator dependency so bad input is a 400 even
    # when API keys are missing.
    validate_query(request.query)
    return request


@router.post("/search", response_model=SearchResponseDTO, responses=ERROR_RESPONSES)
async def search(
    request: SearchRequest = Depends(require_query),
    orchestrator: AnswerOrchestrator = Depends(get_orchestrator),
):
    """Search the web and synthesize a cited answer."""
    prior_turns = [m.to_turn() for m in request.conversation_context or []]
    response = await asyncio.to_thread(orchestrator.answer, request.query, prior_turns)
    return SearchResponseDTO.from_search_response(response)


@router.get("/search")
async def search_status():
    return {"message": "Search API is running. Use POST method to search."}
