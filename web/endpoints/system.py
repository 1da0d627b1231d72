"""System health and format endpoints."""

import logging

from fastapi import APIRouter

from tournaments.models import TeamSize, TournamentFormat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

FORMAT_DESCRIPTIONS = {
    TournamentFormat.SINGLE_ELIMINATION: "One loss and a team is out",
    TournamentFormat.DOUBLE_ELIMINATION: "Losers drop to a second bracket; two losses eliminate",
}


@router.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"isAlive": True}


@router.get("/formats")
async def get_formats():
    """Get supported tournament formats and team sizes."""
    return {
        "formats": [
            {"name": fmt.value, "description": description}
            for fmt, description in FORMAT_DESCRIPTIONS.items()
        ],
        "team_sizes": [size.value for size in TeamSize],
    }
