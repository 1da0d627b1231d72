"""Tournament management: registration, start, and result reporting."""

import asyncio
import logging
from collections.abc import Coroutine
from datetime import datetime
from typing import Any

from .balancer import balance, team_skill
from .bracket import BracketGenerator
from .exceptions import (
    InsufficientTeamsError,
    InvalidStateError,
    TournamentNotFoundError,
    ValidationError,
)
from .graph import MatchGraph
from .models import (
    BracketData,
    BracketSection,
    Match,
    MatchReport,
    MatchStatus,
    Player,
    PlayerRegistrationRequest,
    RoundStatus,
    Team,
    TeamCreateRequest,
    Tournament,
    TournamentCreateRequest,
    TournamentStatus,
    TournamentSummary,
)
from .notifications import NotificationSink, NullNotifier
from .progression import MatchProgressionEngine, ProgressionOutcome
from .ratings import RatingPolicy, RatingService
from .repository import TournamentRepository

logger = logging.getLogger(__name__)

# Statuses in which the roster may still change
ROSTER_OPEN_STATUSES = (TournamentStatus.DRAFT, TournamentStatus.OPEN)


class TournamentManager:
    """Manages tournament lifecycle, bracket generation and progression.

    All mutations of one tournament run under that tournament's lock, so two
    results feeding the same downstream match can never interleave. Work on
    different tournaments proceeds independently.
    """

    def __init__(
        self,
        repository: TournamentRepository,
        rating_service: RatingService | None = None,
        notifier: NotificationSink | None = None,
        rating_policy: RatingPolicy | None = None,
    ):
        self.repository = repository
        self.rating_service = rating_service
        self.notifier = notifier or NullNotifier()
        self.rating_policy = rating_policy or RatingPolicy()
        self.generator = BracketGenerator()
        self.engine = MatchProgressionEngine()
        self._locks: dict[str, asyncio.Lock] = {}
        self._background_tasks: set[asyncio.Task[None]] = set()

    def _lock(self, tournament_id: str) -> asyncio.Lock:
        return self._locks.setdefault(tournament_id, asyncio.Lock())

    def _load(self, tournament_id: str) -> Tournament:
        tournament = self.repository.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    async def create_tournament(self, request: TournamentCreateRequest) -> Tournament:
        """Create a tournament, open for registration unless created as draft."""
        logger.info(f"Creating tournament: {request.name} ({request.format.value})")

        tournament = Tournament(
            name=request.name,
            description=request.description,
            format=request.format,
            team_size=request.team_size,
            max_teams=request.max_teams,
            status=TournamentStatus.DRAFT if request.draft else TournamentStatus.OPEN,
            start_date=request.start_date,
            prize_pool=request.prize_pool,
            created_at=datetime.now(),
        )
        self.repository.create_tournament(tournament)

        if tournament.status == TournamentStatus.OPEN:
            self._notify(self.notifier.notify_tournament_created(tournament))
        return tournament

    async def open_registration(self, tournament_id: str) -> Tournament:
        """Move a draft tournament to open."""
        async with self._lock(tournament_id):
            tournament = self._load(tournament_id)
            if tournament.status != TournamentStatus.DRAFT:
                raise InvalidStateError(
                    f"Tournament {tournament_id} is {tournament.status.value}, not draft"
                )
            self.repository.update_tournament_status(tournament_id, TournamentStatus.OPEN)
            tournament.status = TournamentStatus.OPEN

        self._notify(self.notifier.notify_tournament_created(tournament))
        return tournament

    async def register_player(
        self, tournament_id: str, request: PlayerRegistrationRequest
    ) -> Player:
        """Add an individual signup to the pending pool."""
        async with self._lock(tournament_id):
            tournament = self._load(tournament_id)
            if tournament.status != TournamentStatus.OPEN:
                raise InvalidStateError("Registration closed")

            username = request.username.strip()
            registered = self._registered_usernames(tournament)
            if username.lower() in registered:
                raise ValidationError(f"{username} is already registered")

            capacity = tournament.max_teams * tournament.team_size.players
            if len(registered) >= capacity:
                raise InvalidStateError(f"Tournament is full ({capacity} players)")

            player = request.model_copy(update={"username": username}).to_player()
            self.repository.add_pending_player(tournament_id, player)

        if self.rating_service is not None:
            self.rating_service.ensure_profile(player)

        logger.info(f"Registered {player.username} for tournament {tournament_id}")
        return player

    async def remove_player(self, tournament_id: str, player_id: str) -> bool:
        async with self._lock(tournament_id):
            tournament = self._load(tournament_id)
            self._require_roster_open(tournament)
            return self.repository.remove_pending_player(tournament_id, player_id)

    async def add_team(self, tournament_id: str, request: TeamCreateRequest) -> Team:
        """Create a team directly, bypassing the balancer."""
        async with self._lock(tournament_id):
            tournament = self._load(tournament_id)
            self._require_roster_open(tournament)

            size = tournament.team_size.players
            if len(request.players) != size:
                raise ValidationError(
                    f"Teams in {tournament.team_size.value} need {size} players, "
                    f"got {len(request.players)}"
                )
            usernames = [p.username.strip() for p in request.players]
            taken = self._registered_usernames(tournament)
            for username in usernames:
                if username.lower() in taken:
                    raise ValidationError(f"{username} is already registered")
                taken.add(username.lower())

            # Count the teams the pending pool will form at start
            planned = len(tournament.teams) + len(tournament.pending_players) // size
            if planned >= tournament.max_teams:
                raise InvalidStateError(
                    f"Tournament already has {tournament.max_teams} teams"
                )

            players = [
                p.model_copy(update={"username": username}).to_player()
                for p, username in zip(request.players, usernames)
            ]
            team = Team(
                name=request.name,
                players=players,
                skill_level=team_skill(players),
            )
            self.repository.save_teams(tournament_id, [team])

        if self.rating_service is not None:
            for player in players:
                self.rating_service.ensure_profile(player)
        return team

    async def remove_team(self, tournament_id: str, team_id: str) -> bool:
        async with self._lock(tournament_id):
            tournament = self._load(tournament_id)
            self._require_roster_open(tournament)
            return self.repository.delete_team(tournament_id, team_id)

    async def start_tournament(self, tournament_id: str) -> Tournament:
        """Balance pending players into teams, build the bracket and go active.

        Nothing is written unless the bracket can be built: with fewer than
        two teams the tournament stays open and its pending pool is kept.
        """
        async with self._lock(tournament_id):
            tournament = self._load(tournament_id)
            if tournament.status != TournamentStatus.OPEN:
                raise InvalidStateError(
                    f"Tournament {tournament_id} is {tournament.status.value}, "
                    "only open tournaments can start"
                )

            balanced = balance(tournament.pending_players, tournament.team_size)
            teams = [*tournament.teams, *balanced]
            if len(teams) < 2:
                raise InsufficientTeamsError(len(teams))

            for seed, team in enumerate(teams, start=1):
                team.seed = seed

            graph = self.generator.generate(tournament_id, teams, tournament.format)

            self.repository.save_teams(tournament_id, teams)
            self.repository.clear_pending_players(tournament_id)
            self.repository.save_matches(tournament_id, graph.matches)
            started_at = datetime.now()
            self.repository.update_tournament_status(
                tournament_id, TournamentStatus.ACTIVE, started_at=started_at
            )

            tournament.teams = teams
            tournament.pending_players = []
            tournament.matches = graph.matches
            tournament.status = TournamentStatus.ACTIVE
            tournament.started_at = started_at

        logger.info(
            f"Started tournament {tournament_id} with {len(teams)} teams "
            f"({len(balanced)} balanced from pending players)"
        )
        return tournament

    async def start_match(self, tournament_id: str, match_id: str) -> Match:
        """Mark a READY match as live."""
        async with self._lock(tournament_id):
            tournament = self._require_active(tournament_id)
            outcome = self.engine.start_match(MatchGraph(tournament.matches), match_id)
            self.repository.update_match(match_id, status=MatchStatus.IN_PROGRESS)
        return outcome.match

    async def report_result(
        self,
        tournament_id: str,
        match_id: str,
        score_a: int,
        score_b: int,
        winner_id: str | None = None,
        complete: bool = False,
    ) -> MatchReport:
        """Record a score update or a final result for one match."""
        async with self._lock(tournament_id):
            tournament = self._require_active(tournament_id)
            outcome = self.engine.report_result(
                MatchGraph(tournament.matches),
                match_id,
                score_a,
                score_b,
                winner_id=winner_id,
                complete=complete,
            )

            if not complete:
                self.repository.update_match(match_id, score_a=score_a, score_b=score_b)
                return MatchReport(
                    match=outcome.match,
                    updated_match_ids=outcome.changed_match_ids,
                    tournament_status=tournament.status,
                )

            if outcome.champion_id is None:
                self.repository.save_matches(tournament_id, outcome.changed_matches)
            else:
                completed_at = datetime.now()
                self.repository.save_matches(
                    tournament_id,
                    outcome.changed_matches,
                    TournamentStatus.COMPLETED,
                    completed_at=completed_at,
                    winner_team_id=outcome.champion_id,
                )
                tournament.status = TournamentStatus.COMPLETED
                tournament.winner_team_id = outcome.champion_id
                tournament.completed_at = completed_at
                logger.info(
                    f"Tournament {tournament_id} completed, winner: {outcome.champion_id}"
                )

            unlocked = self._apply_ratings(tournament, outcome)

        team_names = {team.id: team.name for team in tournament.teams}
        self._notify(
            self.notifier.notify_match_complete(tournament.name, outcome.match, team_names)
        )
        if outcome.champion_id is not None:
            self._notify(
                self.notifier.notify_champion(
                    tournament, team_names.get(outcome.champion_id, outcome.champion_id)
                )
            )

        return MatchReport(
            match=outcome.match,
            updated_match_ids=outcome.changed_match_ids,
            tournament_status=tournament.status,
            champion_team_id=outcome.champion_id,
            unlocked_achievements=unlocked,
        )

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        """Get current tournament state."""
        return self.repository.get_tournament(tournament_id)

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0
    ) -> list[TournamentSummary]:
        return self.repository.list_tournaments(limit, offset)

    def get_bracket_view(self, tournament_id: str) -> BracketData | None:
        """Get bracket visualization data."""
        tournament = self.repository.get_tournament(tournament_id)
        if tournament is None:
            return None
        return BracketData(
            tournament=tournament, teams=tournament.teams, matches=tournament.matches
        )

    def get_round_status(self, tournament_id: str, section: BracketSection) -> RoundStatus:
        """Get status of all matches in a round."""
        tournament = self._load(tournament_id)
        matches = tournament.rounds().get(section, [])

        def count(status: MatchStatus) -> int:
            return sum(1 for m in matches if m.status == status)

        completed = count(MatchStatus.COMPLETED)
        byes = count(MatchStatus.BYE)
        return RoundStatus(
            section=section,
            total_matches=len(matches),
            completed_matches=completed,
            pending_matches=count(MatchStatus.PENDING),
            ready_matches=count(MatchStatus.READY),
            in_progress_matches=count(MatchStatus.IN_PROGRESS),
            bye_matches=byes,
            all_completed=bool(matches) and completed + byes == len(matches),
        )

    async def delete_tournament(self, tournament_id: str) -> bool:
        async with self._lock(tournament_id):
            deleted = self.repository.delete_tournament(tournament_id)
        self._locks.pop(tournament_id, None)
        return deleted

    async def wait_for_notifications(self) -> None:
        """Wait until every scheduled notification has been delivered or failed."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    def _require_active(self, tournament_id: str) -> Tournament:
        tournament = self._load(tournament_id)
        if tournament.status != TournamentStatus.ACTIVE:
            raise InvalidStateError(
                f"Tournament {tournament_id} is {tournament.status.value}, not active"
            )
        return tournament

    @staticmethod
    def _registered_usernames(tournament: Tournament) -> set[str]:
        """Lowercased usernames of pending players and team members."""
        names = {p.username.lower() for p in tournament.pending_players}
        names.update(p.username.lower() for t in tournament.teams for p in t.players)
        return names

    @staticmethod
    def _require_roster_open(tournament: Tournament) -> None:
        if tournament.status not in ROSTER_OPEN_STATUSES:
            raise InvalidStateError(
                f"Roster of tournament {tournament.id} is locked ({tournament.status.value})"
            )

    def _apply_ratings(
        self, tournament: Tournament, outcome: ProgressionOutcome
    ) -> dict[str, list[str]]:
        """Send one rating update per player of both teams.

        Runs after the result is stored, so a failing update is logged and
        the remaining players are still rated.
        """
        if self.rating_service is None:
            return {}

        unlocked: dict[str, list[str]] = {}
        for team_id, won in ((outcome.match.winner_id, True), (outcome.loser_id, False)):
            team = tournament.find_team(team_id)
            if team is None:
                continue
            for player in team.players:
                try:
                    achievements = self.rating_service.record_result(
                        player.id, won, self.rating_policy.delta_for(won)
                    )
                except Exception as e:
                    logger.error(
                        f"Rating update failed for player {player.id} "
                        f"in match {outcome.match.id}: {e}"
                    )
                    continue
                if achievements:
                    unlocked[player.id] = achievements
        return unlocked

    def _notify(self, notification: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(self._deliver(notification))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    @staticmethod
    async def _deliver(notification: Coroutine[Any, Any, None]) -> None:
        try:
            await notification
        except Exception as e:
            logger.error(f"Notification delivery failed: {e}")
