"""Tournament API endpoint handlers."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import HTTPException

from .exceptions import (
    BracketEngineError,
    InsufficientTeamsError,
    InvalidResultError,
    InvalidStateError,
    MatchNotFoundError,
    TournamentNotFoundError,
    ValidationError,
)
from .manager import TournamentManager
from .models import (
    BracketSection,
    Match,
    MatchScoreRequest,
    MatchStatus,
    PlayerRegistrationRequest,
    TeamCreateRequest,
    Tournament,
    TournamentCreateRequest,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _status_code_for(error: BracketEngineError) -> int:
    if isinstance(error, (TournamentNotFoundError, MatchNotFoundError)):
        return 404
    if isinstance(error, InvalidStateError):
        return 409
    if isinstance(error, (ValidationError, InvalidResultError, InsufficientTeamsError)):
        return 400
    return 500


def _match_view(match: Match) -> dict[str, Any]:
    view = match.model_dump(mode="json")
    view["round_index"] = match.section.round_index
    view["round_label"] = match.section.label
    view["is_bye"] = match.status == MatchStatus.BYE
    return view


def _tournament_view(tournament: Tournament) -> dict[str, Any]:
    view = tournament.model_dump(mode="json", exclude={"matches"})
    view["team_count"] = len(tournament.teams)
    view["pending_count"] = len(tournament.pending_players)
    return view


class TournamentAPI:
    """FastAPI endpoint handlers for tournament operations."""

    def __init__(self, tournament_manager: TournamentManager):
        self.manager = tournament_manager

    async def _call(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run a manager operation and translate engine errors to HTTP errors."""
        try:
            return await operation()
        except HTTPException:
            raise
        except BracketEngineError as e:
            raise HTTPException(status_code=_status_code_for(e), detail=str(e))
        except Exception as e:
            logger.error(f"Failed to {action}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    async def create_tournament(self, request: TournamentCreateRequest) -> dict[str, Any]:
        """Create a new tournament."""
        tournament = await self._call(
            "create tournament", lambda: self.manager.create_tournament(request)
        )
        return {
            "tournament_id": tournament.id,
            "message": f"Tournament '{tournament.name}' created successfully",
            "status": tournament.status.value,
        }

    async def list_tournaments(
        self, limit: int | None = None, offset: int = 0
    ) -> dict[str, Any]:
        """List all tournaments."""

        async def operation() -> list[Any]:
            return self.manager.list_tournaments(limit, offset)

        tournaments = await self._call("list tournaments", operation)
        return {
            "tournaments": [t.model_dump(mode="json") for t in tournaments],
            "count": len(tournaments),
        }

    async def get_tournament(self, tournament_id: str) -> dict[str, Any]:
        """Get tournament details."""

        async def operation() -> Tournament:
            tournament = self.manager.get_tournament(tournament_id)
            if tournament is None:
                raise HTTPException(status_code=404, detail="Tournament not found")
            return tournament

        tournament = await self._call(f"get tournament {tournament_id}", operation)
        return _tournament_view(tournament)

    async def open_registration(self, tournament_id: str) -> dict[str, Any]:
        tournament = await self._call(
            f"open tournament {tournament_id}",
            lambda: self.manager.open_registration(tournament_id),
        )
        return {
            "tournament_id": tournament_id,
            "message": "Registration opened",
            "status": tournament.status.value,
        }

    async def delete_tournament(self, tournament_id: str) -> dict[str, Any]:
        """Delete a tournament and all related data."""
        deleted = await self._call(
            f"delete tournament {tournament_id}",
            lambda: self.manager.delete_tournament(tournament_id),
        )
        if not deleted:
            raise HTTPException(status_code=404, detail="Tournament not found")
        return {
            "tournament_id": tournament_id,
            "message": "Tournament deleted successfully",
        }

    async def register_player(
        self, tournament_id: str, request: PlayerRegistrationRequest
    ) -> dict[str, Any]:
        player = await self._call(
            f"register player for {tournament_id}",
            lambda: self.manager.register_player(tournament_id, request),
        )
        return {
            "tournament_id": tournament_id,
            "player": player.model_dump(mode="json"),
            "message": "Registered successfully",
        }

    async def remove_player(self, tournament_id: str, player_id: str) -> dict[str, Any]:
        removed = await self._call(
            f"remove player {player_id}",
            lambda: self.manager.remove_player(tournament_id, player_id),
        )
        if not removed:
            raise HTTPException(status_code=404, detail="Player not found")
        return {"tournament_id": tournament_id, "player_id": player_id, "removed": True}

    async def add_team(self, tournament_id: str, request: TeamCreateRequest) -> dict[str, Any]:
        team = await self._call(
            f"add team to {tournament_id}",
            lambda: self.manager.add_team(tournament_id, request),
        )
        return {"tournament_id": tournament_id, "team": team.model_dump(mode="json")}

    async def remove_team(self, tournament_id: str, team_id: str) -> dict[str, Any]:
        removed = await self._call(
            f"remove team {team_id}",
            lambda: self.manager.remove_team(tournament_id, team_id),
        )
        if not removed:
            raise HTTPException(status_code=404, detail="Team not found")
        return {"tournament_id": tournament_id, "team_id": team_id, "removed": True}

    async def start_tournament(self, tournament_id: str) -> dict[str, Any]:
        """Start a tournament."""
        tournament = await self._call(
            f"start tournament {tournament_id}",
            lambda: self.manager.start_tournament(tournament_id),
        )
        return {
            "tournament_id": tournament_id,
            "message": "Tournament started successfully",
            "status": tournament.status.value,
            "team_count": len(tournament.teams),
            "match_count": len(tournament.matches),
        }

    async def get_bracket(self, tournament_id: str) -> dict[str, Any]:
        """Get tournament bracket visualization data."""

        async def operation() -> dict[str, Any]:
            bracket = self.manager.get_bracket_view(tournament_id)
            if bracket is None:
                raise HTTPException(status_code=404, detail="Tournament not found")

            rounds = bracket.tournament.rounds()
            return {
                "tournament": _tournament_view(bracket.tournament),
                "teams": [t.model_dump(mode="json") for t in bracket.teams],
                "rounds": [
                    {
                        "side": section.side.value,
                        "round": section.round,
                        "round_index": section.round_index,
                        "label": section.label,
                        "matches": [_match_view(m) for m in matches],
                    }
                    for section, matches in rounds.items()
                ],
            }

        return await self._call(f"get bracket for {tournament_id}", operation)

    async def get_matches(self, tournament_id: str) -> dict[str, Any]:
        """Get all matches of a tournament in bracket order."""

        async def operation() -> list[Match]:
            tournament = self.manager.get_tournament(tournament_id)
            if tournament is None:
                raise HTTPException(status_code=404, detail="Tournament not found")
            return [m for matches in tournament.rounds().values() for m in matches]

        matches = await self._call(f"get matches for {tournament_id}", operation)
        return {
            "tournament_id": tournament_id,
            "matches": [_match_view(m) for m in matches],
            "count": len(matches),
        }

    async def get_round_status(self, tournament_id: str, round_index: int) -> dict[str, Any]:
        """Get status of all matches in a round, addressed by banded round index."""
        if round_index < 0:
            raise HTTPException(status_code=400, detail="Round index must not be negative")
        section = BracketSection.from_round_index(round_index)

        async def operation() -> dict[str, Any]:
            status = self.manager.get_round_status(tournament_id, section)
            view = status.model_dump(mode="json")
            decided = status.completed_matches + status.bye_matches
            view["completion_percentage"] = (
                decided / status.total_matches * 100 if status.total_matches > 0 else 0
            )
            return view

        return await self._call(
            f"get round status for {tournament_id}, round {round_index}", operation
        )

    async def start_match(self, tournament_id: str, match_id: str) -> dict[str, Any]:
        match = await self._call(
            f"start match {match_id}",
            lambda: self.manager.start_match(tournament_id, match_id),
        )
        return {"tournament_id": tournament_id, "match": _match_view(match)}

    async def report_result(
        self, tournament_id: str, match_id: str, request: MatchScoreRequest
    ) -> dict[str, Any]:
        """Record scores or a final result."""
        report = await self._call(
            f"report result for match {match_id}",
            lambda: self.manager.report_result(
                tournament_id,
                match_id,
                request.score_a,
                request.score_b,
                winner_id=request.winner_id,
                complete=request.complete,
            ),
        )
        return {
            "tournament_id": tournament_id,
            "match": _match_view(report.match),
            "updated_match_ids": report.updated_match_ids,
            "tournament_status": report.tournament_status.value,
            "champion_team_id": report.champion_team_id,
            "unlocked_achievements": report.unlocked_achievements,
        }
