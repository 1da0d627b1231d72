"""Player rating updates and achievement unlocks."""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from .models import Player, PlayerProfile

if TYPE_CHECKING:
    from .database import TournamentDatabaseManager

logger = logging.getLogger(__name__)

# Minimum rating for each rank badge, best first
RANK_TIERS = [
    (2000, "Grand Champion"),
    (1800, "Champion"),
    (1500, "Diamond"),
    (1300, "Platinum"),
    (1100, "Gold"),
    (1000, "Silver"),
]
LOWEST_RANK = "Bronze"

ACHIEVEMENTS = {
    "first_win": "Win your first match",
    "ten_wins": "Win ten matches",
    "veteran": "Play twenty-five matches",
    "champion_rank": "Reach the Champion rank",
}


def rank_for_rating(rating: int) -> str:
    """Rank badge for a rating."""
    for threshold, rank in RANK_TIERS:
        if rating >= threshold:
            return rank
    return LOWEST_RANK


class RatingPolicy(BaseModel):
    """Flat rating change applied per player per decided match."""

    win_delta: int = Field(default=25, description="Rating gained by each winner")
    loss_delta: int = Field(default=-15, description="Rating change for each loser")

    def delta_for(self, won: bool) -> int:
        return self.win_delta if won else self.loss_delta


class RatingService(ABC):
    """Receives one call per player per completed match."""

    @abstractmethod
    def record_result(self, player_id: str, won: bool, delta: int) -> list[str]:
        """Apply a result and return the ids of newly unlocked achievements."""

    def ensure_profile(self, player: Player) -> None:
        """Hook called when a player signs up. Services without profiles ignore it."""


class ProfileRatingService(RatingService):
    """Rating service backed by the player_profiles table."""

    def __init__(self, db: "TournamentDatabaseManager", default_rating: int = 1000):
        self.db = db
        self.default_rating = default_rating

    def ensure_profile(self, player: Player) -> None:
        profile = self.db.get_profile(player.id)
        if profile is None:
            profile = PlayerProfile(
                id=player.id,
                username=player.username,
                rating=self.default_rating,
                rank=rank_for_rating(self.default_rating),
            )
            self.db.save_profile(profile)
            logger.info(f"Created profile for {player.username}")
        elif profile.username != player.username:
            profile.username = player.username
            self.db.save_profile(profile)

    def get_profile(self, player_id: str) -> PlayerProfile | None:
        return self.db.get_profile(player_id)

    def leaderboard(self, limit: int = 50) -> list[PlayerProfile]:
        return self.db.list_profiles()[:limit]

    def record_result(self, player_id: str, won: bool, delta: int) -> list[str]:
        profile = self.db.get_profile(player_id) or PlayerProfile(
            id=player_id, username=player_id, rating=self.default_rating
        )

        if won:
            profile.wins += 1
        else:
            profile.losses += 1
        profile.matches_played += 1
        profile.rating = max(0, profile.rating + delta)
        profile.rank = rank_for_rating(profile.rating)

        unlocked = [
            achievement
            for achievement in self._earned_achievements(profile)
            if achievement not in profile.achievements
        ]
        profile.achievements.extend(unlocked)
        self.db.save_profile(profile)

        if unlocked:
            logger.info(f"{profile.username} unlocked {', '.join(unlocked)}")
        return unlocked

    @staticmethod
    def _earned_achievements(profile: PlayerProfile) -> list[str]:
        earned = []
        if profile.wins >= 1:
            earned.append("first_win")
        if profile.wins >= 10:
            earned.append("ten_wins")
        if profile.matches_played >= 25:
            earned.append("veteran")
        if profile.rating >= 1800:
            earned.append("champion_rank")
        return earned
