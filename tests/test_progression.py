"""Tests for match result reporting and advancement."""

from __future__ import annotations

import pytest

from tournaments.bracket import generate_bracket
from tournaments.exceptions import (
    InvalidResultError,
    InvalidStateError,
    MatchNotFoundError,
    ValidationError,
)
from tournaments.models import BracketSection, MatchStatus, TournamentFormat
from tournaments.progression import MatchProgressionEngine


@pytest.fixture
def engine() -> MatchProgressionEngine:
    return MatchProgressionEngine()


@pytest.fixture
def four_team_single(make_teams):
    teams = make_teams(4)
    return teams, generate_bracket("t1", teams, TournamentFormat.SINGLE_ELIMINATION)


@pytest.fixture
def four_team_double(make_teams):
    teams = make_teams(4)
    return teams, generate_bracket("t1", teams, TournamentFormat.DOUBLE_ELIMINATION)


def test_score_update_keeps_match_open(engine, four_team_single) -> None:
    """Without `complete` only the scores change."""
    _, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    outcome = engine.report_result(graph, opener.id, 1, 0)

    assert outcome.match.score_a == 1
    assert outcome.match.status == MatchStatus.READY
    assert outcome.match.winner_id is None
    assert outcome.changed_match_ids == [opener.id]
    assert outcome.champion_id is None


def test_completed_match_advances_winner(engine, four_team_single) -> None:
    teams, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)
    final = graph.at(BracketSection.winners(1), 0)

    outcome = engine.report_result(
        graph, opener.id, 3, 1, winner_id=teams[0].id, complete=True
    )

    updated_final = outcome.graph.get(final.id)
    assert outcome.match.status == MatchStatus.COMPLETED
    assert outcome.match.winner_id == teams[0].id
    assert outcome.loser_id == teams[1].id
    assert updated_final.team_a_id == teams[0].id
    assert updated_final.status == MatchStatus.PENDING
    assert outcome.changed_match_ids == [opener.id, final.id]


def test_input_graph_is_untouched(engine, four_team_single) -> None:
    """Updates are applied to a copy of the graph."""
    teams, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    engine.report_result(graph, opener.id, 3, 1, winner_id=teams[0].id, complete=True)

    assert graph.get(opener.id).status == MatchStatus.READY
    assert graph.at(BracketSection.winners(1), 0).team_a_id is None


def test_final_reports_champion(engine, four_team_single) -> None:
    teams, graph = four_team_single
    first, second = graph.rounds()[BracketSection.winners(0)]

    graph = engine.report_result(
        graph, first.id, 2, 0, winner_id=teams[0].id, complete=True
    ).graph
    graph = engine.report_result(
        graph, second.id, 0, 2, winner_id=teams[3].id, complete=True
    ).graph
    final = graph.at(BracketSection.winners(1), 0)
    assert final.status == MatchStatus.READY

    outcome = engine.report_result(graph, final.id, 1, 2, winner_id=teams[3].id, complete=True)

    assert outcome.champion_id == teams[3].id
    assert outcome.loser_id == teams[0].id


def test_loser_drops_into_losers_bracket(engine, four_team_double) -> None:
    teams, graph = four_team_double
    opener = graph.at(BracketSection.winners(0), 0)
    losers_opener = graph.at(BracketSection.losers(0), 0)

    outcome = engine.report_result(
        graph, opener.id, 2, 1, winner_id=teams[0].id, complete=True
    )

    assert outcome.graph.get(losers_opener.id).team_a_id == teams[1].id
    assert losers_opener.id in outcome.changed_match_ids


def test_start_match_marks_in_progress(engine, four_team_single) -> None:
    teams, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    started = engine.start_match(graph, opener.id)
    outcome = engine.report_result(
        started.graph, opener.id, 2, 0, winner_id=teams[0].id, complete=True
    )

    assert started.match.status == MatchStatus.IN_PROGRESS
    assert outcome.match.status == MatchStatus.COMPLETED


def test_start_match_requires_ready(engine, four_team_single) -> None:
    _, graph = four_team_single
    final = graph.at(BracketSection.winners(1), 0)

    with pytest.raises(InvalidStateError):
        engine.start_match(graph, final.id)


@pytest.mark.parametrize(
    ("score_a", "score_b"), [(-1, 0), (0, -3), (True, 0), ("2", 1), (1.5, 0)]
)
def test_bad_scores_are_rejected(engine, four_team_single, score_a, score_b) -> None:
    _, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    with pytest.raises(ValidationError):
        engine.report_result(graph, opener.id, score_a, score_b)


def test_missing_match_id_is_rejected(engine, four_team_single) -> None:
    _, graph = four_team_single

    with pytest.raises(ValidationError):
        engine.report_result(graph, "", 1, 0)


def test_unknown_match_is_rejected(engine, four_team_single) -> None:
    _, graph = four_team_single

    with pytest.raises(MatchNotFoundError):
        engine.report_result(graph, "no-such-match", 1, 0)


def test_completion_requires_winner(engine, four_team_single) -> None:
    _, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    with pytest.raises(ValidationError):
        engine.report_result(graph, opener.id, 2, 1, complete=True)


def test_tied_result_cannot_complete(engine, four_team_single) -> None:
    teams, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    with pytest.raises(InvalidResultError):
        engine.report_result(graph, opener.id, 2, 2, winner_id=teams[0].id, complete=True)


def test_tied_score_update_is_allowed(engine, four_team_single) -> None:
    _, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    outcome = engine.report_result(graph, opener.id, 2, 2)

    assert (outcome.match.score_a, outcome.match.score_b) == (2, 2)


def test_winner_must_play_in_match(engine, four_team_single) -> None:
    teams, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)

    with pytest.raises(InvalidResultError):
        engine.report_result(graph, opener.id, 2, 1, winner_id=teams[2].id, complete=True)


def test_pending_match_rejects_results(engine, four_team_single) -> None:
    _, graph = four_team_single
    final = graph.at(BracketSection.winners(1), 0)

    with pytest.raises(InvalidStateError):
        engine.report_result(graph, final.id, 1, 0)


def test_completed_match_rejects_second_result(engine, four_team_single) -> None:
    teams, graph = four_team_single
    opener = graph.at(BracketSection.winners(0), 0)
    graph = engine.report_result(
        graph, opener.id, 2, 1, winner_id=teams[0].id, complete=True
    ).graph

    with pytest.raises(InvalidStateError):
        engine.report_result(graph, opener.id, 2, 1, winner_id=teams[1].id, complete=True)


def test_bye_match_rejects_results(engine, make_teams) -> None:
    teams = make_teams(3)
    graph = generate_bracket("t1", teams, TournamentFormat.SINGLE_ELIMINATION)
    bye = graph.at(BracketSection.winners(0), 1)
    assert bye.status == MatchStatus.BYE

    with pytest.raises(InvalidStateError):
        engine.report_result(graph, bye.id, 1, 0, winner_id=teams[2].id, complete=True)
