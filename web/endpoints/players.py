"""Player profile and leaderboard endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from tournaments import ProfileRatingService
from web.endpoints.tournaments import get_tournament_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_profile_service() -> ProfileRatingService:
    service = get_tournament_api().manager.rating_service
    if not isinstance(service, ProfileRatingService):
        raise HTTPException(status_code=404, detail="Player profiles are disabled")
    return service


@router.get("/players/{player_id}")
async def get_player_profile(player_id: str):
    """Get a player's rating, rank and achievements."""
    profile = get_profile_service().get_profile(player_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return profile.model_dump(mode="json")


@router.get("/leaderboard")
async def get_leaderboard(limit: int = 50):
    """Top players by rating."""
    if limit < 1:
        raise HTTPException(status_code=400, detail="limit must be positive")
    profiles = get_profile_service().leaderboard(limit)
    return {
        "players": [p.model_dump(mode="json") for p in profiles],
        "count": len(profiles),
    }
