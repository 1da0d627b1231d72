"""Match graph: an arena of match nodes linked by advancement edges."""

import logging
from collections.abc import Iterable, Iterator

from .exceptions import MatchNotFoundError
from .models import BracketSection, Match, MatchSlot, MatchStatus

logger = logging.getLogger(__name__)


class MatchGraph:
    """Matches addressed by id, connected through winner and loser slots.

    Nodes are stored in allocation order, which is also a topological order:
    every edge points from an earlier node to a later one.
    """

    def __init__(self, matches: Iterable[Match] = ()):
        self._matches: list[Match] = []
        self._by_id: dict[str, Match] = {}
        self._by_position: dict[tuple[BracketSection, int], Match] = {}
        for match in matches:
            self.add(match)

    def add(self, match: Match) -> Match:
        if match.id in self._by_id:
            raise ValueError(f"Duplicate match id {match.id}")
        position = (match.section, match.match_index)
        if position in self._by_position:
            raise ValueError(
                f"Duplicate match {match.section.label} #{match.match_index}"
            )
        self._matches.append(match)
        self._by_id[match.id] = match
        self._by_position[position] = match
        return match

    def get(self, match_id: str) -> Match:
        try:
            return self._by_id[match_id]
        except KeyError:
            raise MatchNotFoundError(match_id) from None

    def at(self, section: BracketSection, match_index: int) -> Match:
        """Look a match up by its place in the bracket."""
        try:
            return self._by_position[(section, match_index)]
        except KeyError:
            raise MatchNotFoundError(f"{section.label} #{match_index}") from None

    def __iter__(self) -> Iterator[Match]:
        return iter(self._matches)

    def __len__(self) -> int:
        return len(self._matches)

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._by_id

    @property
    def matches(self) -> list[Match]:
        return list(self._matches)

    def rounds(self) -> dict[BracketSection, list[Match]]:
        """Matches grouped by round, in bracket order."""
        grouped: dict[BracketSection, list[Match]] = {}
        for match in sorted(
            self._matches, key=lambda m: (m.section.round_index, m.match_index)
        ):
            grouped.setdefault(match.section, []).append(match)
        return grouped

    def terminal(self) -> Match:
        """The match whose winner takes the tournament."""
        terminals = [m for m in self._matches if m.advance_to is None]
        if len(terminals) != 1:
            raise ValueError(f"Expected one terminal match, found {len(terminals)}")
        return terminals[0]

    def copy(self) -> "MatchGraph":
        return MatchGraph(m.model_copy(deep=True) for m in self._matches)

    def fill_slot(self, slot: MatchSlot, team_id: str) -> list[str]:
        """Write a team into a slot and settle the target match.

        Returns the ids of every match changed, including matches reached
        through chained BYEs.
        """
        target = self.get(slot.match_id)
        if target.team_in(slot.position) is not None:
            raise ValueError(
                f"Slot {slot.position.value} of match {target.id} is already filled"
            )
        target.set_team(slot.position, team_id)
        return _unique([target.id, *self.settle(target)])

    def close_slot(self, slot: MatchSlot) -> list[str]:
        """Mark a slot as one that will never receive a team."""
        target = self.get(slot.match_id)
        if target.is_closed(slot.position):
            return []
        target.closed_slots = sorted(
            [*target.closed_slots, slot.position], key=lambda p: p.value
        )
        return _unique([target.id, *self.settle(target)])

    def settle(self, match: Match) -> list[str]:
        """Apply the automatic transitions of a pending match.

        A filled match becomes READY. A match that has one team and a closed
        partner slot is a BYE and its team advances at once. A match with both
        slots closed is a void BYE that closes the slots it feeds. A walkover
        never produces a loser, so any slot fed by its loser is closed too.
        """
        if match.status != MatchStatus.PENDING:
            return []

        changed: list[str] = []
        if match.closed_slots and match.drop_to is not None:
            changed.extend(self.close_slot(match.drop_to))

        if match.is_void:
            match.status = MatchStatus.BYE
            changed.append(match.id)
            if match.advance_to is not None:
                changed.extend(self.close_slot(match.advance_to))
            return _unique(changed)

        if match.is_filled:
            match.status = MatchStatus.READY
            changed.append(match.id)
            return _unique(changed)

        if len(match.team_ids) == 1 and match.closed_slots:
            winner_id = match.team_ids[0]
            match.status = MatchStatus.BYE
            match.winner_id = winner_id
            changed.append(match.id)
            logger.debug(f"Match {match.id} is a bye for {winner_id}")
            if match.advance_to is not None:
                changed.extend(self.fill_slot(match.advance_to, winner_id))

        return _unique(changed)


def _unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))
