"""Persistence boundary consumed by the tournament manager."""

from abc import ABC, abstractmethod
from typing import Any

from .models import (
    Match,
    Player,
    Team,
    Tournament,
    TournamentStatus,
    TournamentSummary,
)


class TournamentRepository(ABC):
    """Storage of tournaments, teams, pending players and matches.

    The manager issues every read and write through this interface and holds
    no storage logic of its own.
    """

    @abstractmethod
    def create_tournament(self, tournament: Tournament) -> str:
        """Store a new tournament and return its id."""

    @abstractmethod
    def get_tournament(self, tournament_id: str) -> Tournament | None:
        """Load a tournament with its teams, pending players and matches."""

    @abstractmethod
    def list_tournaments(
        self, limit: int | None = None, offset: int = 0
    ) -> list[TournamentSummary]:
        """List tournaments, newest first."""

    @abstractmethod
    def update_tournament_status(
        self, tournament_id: str, status: TournamentStatus, **kwargs: Any
    ) -> bool:
        """Update status and optional started_at, completed_at, winner_team_id."""

    @abstractmethod
    def delete_tournament(self, tournament_id: str) -> bool:
        """Delete a tournament and everything that belongs to it."""

    @abstractmethod
    def save_teams(self, tournament_id: str, teams: list[Team]) -> None:
        """Insert or replace teams and their members."""

    @abstractmethod
    def delete_team(self, tournament_id: str, team_id: str) -> bool:
        """Remove a team from a tournament."""

    @abstractmethod
    def add_pending_player(self, tournament_id: str, player: Player) -> None:
        """Add an individual signup to the pending pool."""

    @abstractmethod
    def remove_pending_player(self, tournament_id: str, player_id: str) -> bool:
        """Remove an individual signup from the pending pool."""

    @abstractmethod
    def get_pending_players(self, tournament_id: str) -> list[Player]:
        """Pending players in registration order."""

    @abstractmethod
    def clear_pending_players(self, tournament_id: str) -> None:
        """Empty the pending pool."""

    @abstractmethod
    def save_matches(
        self,
        tournament_id: str,
        matches: list[Match],
        tournament_status: TournamentStatus | None = None,
        **status_fields: Any,
    ) -> None:
        """Insert or replace matches, all or nothing.

        A given `tournament_status` (with the same optional fields as
        `update_tournament_status`) is written in the same transaction.
        """

    @abstractmethod
    def update_match(self, match_id: str, **fields: Any) -> bool:
        """Update individual columns of one match."""

    @abstractmethod
    def get_matches(self, tournament_id: str) -> list[Match]:
        """All matches of a tournament in bracket order."""
