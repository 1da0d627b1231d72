"""Tests for the SQLite tournament repository."""

from __future__ import annotations

import sqlite3
from datetime import datetime

import pytest

from tournaments.bracket import generate_bracket
from tournaments.database import TournamentDatabaseManager
from tournaments.models import (
    BracketSection,
    MatchStatus,
    Player,
    PlayerProfile,
    SlotPosition,
    TeamSize,
    Tournament,
    TournamentFormat,
    TournamentStatus,
)
from tournaments.schema import SchemaManager


def new_tournament(**overrides) -> Tournament:
    data = {
        "name": "Weekend Cup",
        "format": TournamentFormat.DOUBLE_ELIMINATION,
        "team_size": TeamSize.SOLO,
        "prize_pool": "5,000 Robux",
        "created_at": datetime(2026, 10, 1, 18, 0),
    }
    data.update(overrides)
    return Tournament(**data)


def test_schema_files_are_present() -> None:
    assert SchemaManager().validate_schema_files() is True


def test_tournament_round_trip(database: TournamentDatabaseManager) -> None:
    tournament = new_tournament(start_date=datetime(2026, 10, 3, 20, 0))

    database.create_tournament(tournament)
    loaded = database.get_tournament(tournament.id)

    assert loaded.name == "Weekend Cup"
    assert loaded.format == TournamentFormat.DOUBLE_ELIMINATION
    assert loaded.status == TournamentStatus.OPEN
    assert loaded.start_date == datetime(2026, 10, 3, 20, 0)
    assert loaded.prize_pool == "5,000 Robux"
    assert loaded.teams == []
    assert loaded.matches == []


def test_missing_tournament_is_none(database: TournamentDatabaseManager) -> None:
    assert database.get_tournament("nope") is None


def test_list_tournaments_newest_first(database: TournamentDatabaseManager) -> None:
    older = new_tournament(name="Older", created_at=datetime(2026, 1, 1))
    newer = new_tournament(name="Newer", created_at=datetime(2026, 6, 1))
    database.create_tournament(older)
    database.create_tournament(newer)

    summaries = database.list_tournaments()
    limited = database.list_tournaments(limit=1, offset=1)

    assert [s.name for s in summaries] == ["Newer", "Older"]
    assert [s.name for s in limited] == ["Older"]


def test_status_update_with_timestamps(database: TournamentDatabaseManager) -> None:
    tournament = new_tournament()
    database.create_tournament(tournament)
    completed_at = datetime(2026, 10, 2, 22, 30)

    updated = database.update_tournament_status(
        tournament.id,
        TournamentStatus.COMPLETED,
        completed_at=completed_at,
        winner_team_id="team-1",
    )

    loaded = database.get_tournament(tournament.id)
    assert updated is True
    assert loaded.status == TournamentStatus.COMPLETED
    assert loaded.completed_at == completed_at
    assert loaded.winner_team_id == "team-1"
    assert database.update_tournament_status("nope", TournamentStatus.ACTIVE) is False


def test_pending_players_keep_signup_order(database: TournamentDatabaseManager) -> None:
    tournament = new_tournament()
    database.create_tournament(tournament)
    names = ["zed", "amy", "mo"]
    players = [Player(username=name, rivals_level=10) for name in names]
    for player in players:
        database.add_pending_player(tournament.id, player)

    assert [p.username for p in database.get_pending_players(tournament.id)] == names
    assert database.remove_pending_player(tournament.id, players[1].id) is True
    assert [p.username for p in database.get_pending_players(tournament.id)] == ["zed", "mo"]

    database.clear_pending_players(tournament.id)
    assert database.get_pending_players(tournament.id) == []


def test_teams_keep_order_when_saved_again(database, make_teams) -> None:
    tournament = new_tournament()
    database.create_tournament(tournament)
    teams = make_teams(3)
    database.save_teams(tournament.id, teams[:1])
    database.save_teams(tournament.id, teams[1:])

    teams[0].seed = 9
    database.save_teams(tournament.id, [teams[0]])

    loaded = database.get_tournament(tournament.id).teams
    assert [t.id for t in loaded] == [t.id for t in teams]
    assert loaded[0].seed == 9
    assert loaded[0].players[0].username == "player1"
    assert database.delete_team(tournament.id, teams[2].id) is True
    assert len(database.get_tournament(tournament.id).teams) == 2


def test_matches_round_trip_with_links(database, make_teams) -> None:
    """Edges, sections and closed slots survive storage."""
    tournament = new_tournament()
    database.create_tournament(tournament)
    teams = make_teams(3)
    graph = generate_bracket(tournament.id, teams, TournamentFormat.DOUBLE_ELIMINATION)

    database.save_matches(tournament.id, graph.matches)
    loaded = {m.id: m for m in database.get_matches(tournament.id)}

    assert len(loaded) == len(graph)
    for match in graph:
        assert loaded[match.id] == match
    losers_opener = graph.at(BracketSection.losers(0), 0)
    assert loaded[losers_opener.id].closed_slots == [SlotPosition.B]


def test_update_match_fields(database, make_teams) -> None:
    tournament = new_tournament()
    database.create_tournament(tournament)
    graph = generate_bracket(tournament.id, make_teams(2), TournamentFormat.SINGLE_ELIMINATION)
    database.save_matches(tournament.id, graph.matches)
    match_id = graph.matches[0].id

    assert database.update_match(match_id, score_a=4, status=MatchStatus.IN_PROGRESS) is True

    stored = database.get_matches(tournament.id)[0]
    assert stored.score_a == 4
    assert stored.status == MatchStatus.IN_PROGRESS
    with pytest.raises(ValueError):
        database.update_match(match_id, round_number=3)


def test_delete_cascades(database, make_teams) -> None:
    tournament = new_tournament()
    database.create_tournament(tournament)
    teams = make_teams(2)
    database.save_teams(tournament.id, teams)
    database.save_matches(
        tournament.id,
        generate_bracket(tournament.id, teams, TournamentFormat.SINGLE_ELIMINATION).matches,
    )

    assert database.delete_tournament(tournament.id) is True
    assert database.delete_tournament(tournament.id) is False
    assert database.get_matches(tournament.id) == []
    with sqlite3.connect(database.db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM team_members").fetchone()[0] == 0


def test_profiles_round_trip_and_order(database: TournamentDatabaseManager) -> None:
    low = PlayerProfile(id="p1", username="low", rating=900)
    high = PlayerProfile(
        id="p2", username="high", rating=1850, wins=12, achievements=["first_win"]
    )
    database.save_profile(low)
    database.save_profile(high)

    assert database.get_profile("p2") == high
    assert database.get_profile("missing") is None
    assert [p.id for p in database.list_profiles()] == ["p2", "p1"]


def test_incomplete_schema_creates_nothing(tmp_path) -> None:
    """A missing schema file is reported before any table is created."""
    tables = tmp_path / "tables"
    tables.mkdir()
    source = SchemaManager()
    for name in source.table_files[:-2]:
        (tables / name).write_text((source.tables_dir / name).read_text(encoding="utf-8"))
    schema = SchemaManager(schema_dir=tmp_path)

    with sqlite3.connect(tmp_path / "partial.db") as conn:
        with pytest.raises(FileNotFoundError):
            schema.initialize_database_schema(conn.cursor())
        count = conn.execute("SELECT COUNT(*) FROM sqlite_master").fetchone()[0]

    assert schema.validate_schema_files() is False
    assert schema.missing_files() == ["player_profiles.sql", "indexes.sql"]
    assert count == 0


def test_save_matches_can_complete_the_tournament(database, make_teams) -> None:
    """Final matches and the winner are written in one transaction."""
    tournament = new_tournament()
    database.create_tournament(tournament)
    teams = make_teams(2)
    graph = generate_bracket(tournament.id, teams, TournamentFormat.SINGLE_ELIMINATION)
    final = graph.matches[0].model_copy(
        update={"winner_id": teams[0].id, "status": MatchStatus.COMPLETED}
    )
    completed_at = datetime(2026, 10, 4, 21, 0)

    database.save_matches(
        tournament.id,
        [final],
        TournamentStatus.COMPLETED,
        completed_at=completed_at,
        winner_team_id=teams[0].id,
    )

    loaded = database.get_tournament(tournament.id)
    assert loaded.status == TournamentStatus.COMPLETED
    assert loaded.winner_team_id == teams[0].id
    assert loaded.completed_at == completed_at
    assert loaded.matches[0].status == MatchStatus.COMPLETED


def test_failed_completion_write_rolls_back_matches(database, make_teams) -> None:
    tournament = new_tournament()
    database.create_tournament(tournament)
    graph = generate_bracket(tournament.id, make_teams(2), TournamentFormat.SINGLE_ELIMINATION)

    with pytest.raises(sqlite3.Error):
        database.save_matches(
            tournament.id,
            graph.matches,
            TournamentStatus.COMPLETED,
            winner_team_id=object(),
        )

    assert database.get_matches(tournament.id) == []
