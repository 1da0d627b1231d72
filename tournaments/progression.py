"""Match result reporting and bracket advancement."""

import logging
from dataclasses import dataclass, field

from .exceptions import InvalidResultError, InvalidStateError, ValidationError
from .graph import MatchGraph
from .models import Match, MatchStatus

logger = logging.getLogger(__name__)

# Statuses in which a match accepts scores
SCORABLE_STATUSES = (MatchStatus.READY, MatchStatus.IN_PROGRESS)


@dataclass
class ProgressionOutcome:
    """Result of applying an update to a match graph."""

    graph: MatchGraph
    match: Match
    changed_match_ids: list[str] = field(default_factory=list)
    loser_id: str | None = None
    champion_id: str | None = None

    @property
    def changed_matches(self) -> list[Match]:
        return [self.graph.get(match_id) for match_id in self.changed_match_ids]


class MatchProgressionEngine:
    """Applies score updates and results to a match graph.

    Every update is validated against the graph it is given and then applied
    to a copy, so a rejected update leaves no trace and an accepted one is
    returned as a complete new graph with all chained advancements done.
    """

    def start_match(self, graph: MatchGraph, match_id: str) -> ProgressionOutcome:
        """Move a READY match to IN_PROGRESS."""
        current = self._lookup(graph, match_id)
        if current.status != MatchStatus.READY:
            raise InvalidStateError(
                f"Match {match_id} cannot start while {current.status.value}"
            )

        updated = graph.copy()
        match = updated.get(match_id)
        match.status = MatchStatus.IN_PROGRESS
        return ProgressionOutcome(graph=updated, match=match, changed_match_ids=[match.id])

    def report_result(
        self,
        graph: MatchGraph,
        match_id: str,
        score_a: int,
        score_b: int,
        winner_id: str | None = None,
        complete: bool = False,
    ) -> ProgressionOutcome:
        """Record scores and, when ``complete``, decide the match.

        Completing a match writes the winner into the slot it advances to, drops
        the loser into the losers bracket when the match has a loser edge, and
        reports the champion when the match is the terminal one.
        """
        self._validate_score(score_a, "score_a")
        self._validate_score(score_b, "score_b")
        current = self._lookup(graph, match_id)

        if current.status not in SCORABLE_STATUSES:
            raise InvalidStateError(
                f"Match {match_id} is {current.status.value} and no longer accepts results"
            )

        if complete:
            if not winner_id:
                raise ValidationError("A winner id is required to complete a match")
            if score_a == score_b:
                raise InvalidResultError(
                    f"Match {match_id} cannot finish tied at {score_a}-{score_b}"
                )
            if not current.has_team(winner_id):
                raise InvalidResultError(
                    f"Team {winner_id} is not playing in match {match_id}"
                )

        updated = graph.copy()
        match = updated.get(match_id)
        match.score_a = score_a
        match.score_b = score_b

        if not complete:
            return ProgressionOutcome(graph=updated, match=match, changed_match_ids=[match.id])

        match.status = MatchStatus.COMPLETED
        match.winner_id = winner_id
        outcome = ProgressionOutcome(
            graph=updated,
            match=match,
            changed_match_ids=[match.id],
            loser_id=match.loser_id,
        )

        if match.advance_to is not None:
            outcome.changed_match_ids.extend(updated.fill_slot(match.advance_to, winner_id))
        else:
            outcome.champion_id = winner_id

        if match.drop_to is not None and outcome.loser_id is not None:
            outcome.changed_match_ids.extend(
                updated.fill_slot(match.drop_to, outcome.loser_id)
            )

        outcome.changed_match_ids = list(dict.fromkeys(outcome.changed_match_ids))
        logger.info(
            f"Match {match_id} completed {score_a}-{score_b}, winner {winner_id}"
            + (" (champion)" if outcome.champion_id else "")
        )
        return outcome

    @staticmethod
    def _lookup(graph: MatchGraph, match_id: str) -> Match:
        if not match_id:
            raise ValidationError("A match id is required")
        return graph.get(match_id)

    @staticmethod
    def _validate_score(score: int, name: str) -> None:
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValidationError(f"{name} must be an integer, got {score!r}")
        if score < 0:
            raise ValidationError(f"{name} must not be negative, got {score}")
