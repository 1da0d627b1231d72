"""Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Team and player builders for bracket tests
- A temporary SQLite database and a fully wired tournament manager
- Fake collaborators that record what the manager sends them

Learning notes:
- conftest.py is a special filename recognized by pytest
- Fixtures defined here are available to all tests without importing
- Factory fixtures return a function, so each test picks its own sizes
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from tournaments.database import TournamentDatabaseManager
from tournaments.graph import MatchGraph
from tournaments.manager import TournamentManager
from tournaments.models import Match, MatchStatus, Player, Team, Tournament
from tournaments.notifications import NotificationSink
from tournaments.progression import MatchProgressionEngine
from tournaments.ratings import RatingService


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


class RecordingRatingService(RatingService):
    """Rating service that only remembers its calls.

    Learning notes:
    - Subclassing the ABC keeps the fake honest: a missing method fails fast
    - Tests assert on `calls` instead of on stored ratings
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, bool, int]] = []
        self.profiles_seen: list[str] = []

    def record_result(self, player_id: str, won: bool, delta: int) -> list[str]:
        self.calls.append((player_id, won, delta))
        return []

    def ensure_profile(self, player: Player) -> None:
        self.profiles_seen.append(player.id)


class RecordingNotifier(NotificationSink):
    """Notification sink that stores events as (kind, payload) tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    async def notify_tournament_created(self, tournament: Tournament) -> None:
        self.events.append(("created", tournament.id))

    async def notify_match_complete(
        self, tournament_name: str, match: Match, team_names: dict[str, str]
    ) -> None:
        self.events.append(("match", match.id))

    async def notify_champion(self, tournament: Tournament, winner_name: str) -> None:
        self.events.append(("champion", winner_name))

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def make_teams() -> Callable[[int], list[Team]]:
    """Build `n` solo teams seeded 1..n, strongest first.

    Learning notes:
    - Team names double as readable seeds in assertion messages
    - Skill falls with the seed so "higher seed wins" is well defined
    """

    def _make(count: int) -> list[Team]:
        return [
            Team(
                name=f"Team {seed}",
                players=[Player(username=f"player{seed}", rivals_level=max(1, 200 - seed))],
                seed=seed,
                skill_level=max(1, 200 - seed),
            )
            for seed in range(1, count + 1)
        ]

    return _make


@pytest.fixture
def make_players() -> Callable[[list[int]], list[Player]]:
    """Build players from a list of skill levels, named p0, p1, ..."""

    def _make(levels: list[int]) -> list[Player]:
        return [
            Player(username=f"p{index}", rivals_level=level)
            for index, level in enumerate(levels)
        ]

    return _make


@pytest.fixture
def database(tmp_path: Path) -> TournamentDatabaseManager:
    """Provide an isolated SQLite database per test."""
    return TournamentDatabaseManager(db_path=tmp_path / "tournaments.db")


@pytest.fixture
def rating_service() -> RecordingRatingService:
    return RecordingRatingService()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def manager(
    database: TournamentDatabaseManager,
    rating_service: RecordingRatingService,
    notifier: RecordingNotifier,
) -> TournamentManager:
    """Tournament manager wired to the temporary database and the fakes.

    Learning notes:
    - Manager calls are async; tests drive them with asyncio.run
    - Keep one asyncio.run per test so per-tournament locks share a loop
    """
    return TournamentManager(database, rating_service=rating_service, notifier=notifier)


# =============================================================================
# BRACKET HELPERS
# =============================================================================


def seed_winner(match: Match, seeds: dict[str, int]) -> str:
    """Pick the better-seeded team of a filled match."""
    return min(match.team_ids, key=lambda team_id: seeds[team_id])


def play_out(
    graph: MatchGraph,
    seeds: dict[str, int],
    engine: MatchProgressionEngine | None = None,
    pick_winner: Callable[[Match], str] | None = None,
) -> tuple[MatchGraph, str | None, list[Match]]:
    """Complete every playable match until the bracket stops moving.

    The better seed wins unless `pick_winner` chooses otherwise. Returns the
    final graph, the champion id (if any) and the completed matches in the
    order they were played.
    """
    engine = engine or MatchProgressionEngine()
    champion = None
    played: list[Match] = []

    while True:
        ready = [m for m in graph if m.status == MatchStatus.READY]
        if not ready:
            return graph, champion, played
        match = ready[0]
        winner = pick_winner(match) if pick_winner else seed_winner(match, seeds)
        score = (2, 1) if winner == match.team_a_id else (1, 2)
        outcome = engine.report_result(
            graph, match.id, *score, winner_id=winner, complete=True
        )
        graph = outcome.graph
        played.append(outcome.match)
        if outcome.champion_id is not None:
            champion = outcome.champion_id


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers.

    Learning notes:
    - Markers are used to categorize tests
    - Use with @pytest.mark.slow, etc.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
