"""Health check endpoint."""

from fastapi import APIRouter

from server.schemas.responses import HealthResponseDTO
from utils.time_utils import to_iso, utc_now

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponseDTO)
async def health_check():
    """Health check endpoint."""
    return HealthResponseDTO(status="healthy", timestamp=to_iso(utc_now()), version="1.0.0")
