"""Bracket generation for single and double elimination."""

import logging
import math

from .exceptions import InsufficientTeamsError, ValidationError
from .graph import MatchGraph
from .models import (
    BracketSection,
    Match,
    MatchSlot,
    MatchStatus,
    SlotPosition,
    Team,
    TournamentFormat,
)

logger = logging.getLogger(__name__)


class BracketGenerator:
    """Builds the match graph for an ordered list of seeded teams.

    Teams are placed into the first round in the order given: match ``m`` of
    round 0 pairs ``teams[2m]`` with ``teams[2m + 1]``. Empty first-round
    slots are BYEs and are resolved before ``generate`` returns.
    """

    def generate(
        self, tournament_id: str, teams: list[Team], format: TournamentFormat
    ) -> MatchGraph:
        if format == TournamentFormat.ROUND_ROBIN:
            raise ValidationError("Round robin tournaments are not supported")
        if len(teams) < 2:
            raise InsufficientTeamsError(len(teams))

        winners_rounds = self.calculate_rounds(len(teams))
        double = format == TournamentFormat.DOUBLE_ELIMINATION
        losers_rounds = self.calculate_losers_rounds(winners_rounds) if double else 0

        graph = MatchGraph()
        for round_number in range(winners_rounds):
            for index in range(self.winners_round_size(winners_rounds, round_number)):
                graph.add(
                    Match(
                        tournament_id=tournament_id,
                        section=BracketSection.winners(round_number),
                        match_index=index,
                    )
                )

        if double:
            for round_number in range(losers_rounds):
                for index in range(self.losers_round_size(winners_rounds, round_number)):
                    graph.add(
                        Match(
                            tournament_id=tournament_id,
                            section=BracketSection.losers(round_number),
                            match_index=index,
                        )
                    )
            graph.add(
                Match(
                    tournament_id=tournament_id,
                    section=BracketSection.grand_final(),
                    match_index=0,
                )
            )

        self._link_winners(graph, winners_rounds, double, losers_rounds)
        if double:
            self._link_losers(graph, winners_rounds, losers_rounds)

        self._seed(graph, teams, winners_rounds)

        for match in graph:
            graph.settle(match)
        byes = sum(
            1
            for match in graph
            if match.section == BracketSection.winners(0)
            and match.status == MatchStatus.BYE
        )

        logger.info(
            f"Generated {format.value} bracket for tournament {tournament_id}: "
            f"{len(teams)} teams, {winners_rounds} winners rounds, "
            f"{losers_rounds} losers rounds, {len(graph)} matches, {byes} first-round byes"
        )
        return graph

    @staticmethod
    def calculate_rounds(team_count: int) -> int:
        """Calculate winners-bracket rounds needed for a team count."""
        return math.ceil(math.log2(team_count))

    @staticmethod
    def calculate_losers_rounds(winners_rounds: int) -> int:
        return (winners_rounds - 1) * 2

    @staticmethod
    def winners_round_size(winners_rounds: int, round_number: int) -> int:
        return 2 ** (winners_rounds - round_number - 1)

    @staticmethod
    def losers_round_size(winners_rounds: int, round_number: int) -> int:
        return 2 ** (winners_rounds - 2 - round_number // 2)

    def _link_winners(
        self,
        graph: MatchGraph,
        winners_rounds: int,
        double: bool,
        losers_rounds: int,
    ) -> None:
        grand_final = graph.at(BracketSection.grand_final(), 0) if double else None

        for round_number in range(winners_rounds):
            for index in range(self.winners_round_size(winners_rounds, round_number)):
                match = graph.at(BracketSection.winners(round_number), index)

                if round_number < winners_rounds - 1:
                    target = graph.at(BracketSection.winners(round_number + 1), index // 2)
                    match.advance_to = MatchSlot(
                        match_id=target.id, position=SlotPosition.for_index(index)
                    )
                elif grand_final is not None:
                    match.advance_to = MatchSlot(
                        match_id=grand_final.id, position=SlotPosition.A
                    )

                if not double:
                    continue

                if losers_rounds == 0:
                    # Two teams: the first loss sends straight to the grand final
                    match.drop_to = MatchSlot(
                        match_id=grand_final.id, position=SlotPosition.B
                    )
                elif round_number == 0:
                    target = graph.at(BracketSection.losers(0), index // 2)
                    match.drop_to = MatchSlot(
                        match_id=target.id, position=SlotPosition.for_index(index)
                    )
                else:
                    target = graph.at(BracketSection.losers(round_number * 2 - 1), index)
                    match.drop_to = MatchSlot(match_id=target.id, position=SlotPosition.B)

    def _link_losers(
        self, graph: MatchGraph, winners_rounds: int, losers_rounds: int
    ) -> None:
        grand_final = graph.at(BracketSection.grand_final(), 0)

        for round_number in range(losers_rounds):
            for index in range(self.losers_round_size(winners_rounds, round_number)):
                match = graph.at(BracketSection.losers(round_number), index)

                if round_number == losers_rounds - 1:
                    match.advance_to = MatchSlot(
                        match_id=grand_final.id, position=SlotPosition.B
                    )
                elif round_number % 2 == 0:
                    # Survivors meet the next batch of winners-bracket losers
                    target = graph.at(BracketSection.losers(round_number + 1), index)
                    match.advance_to = MatchSlot(match_id=target.id, position=SlotPosition.A)
                else:
                    target = graph.at(BracketSection.losers(round_number + 1), index // 2)
                    match.advance_to = MatchSlot(
                        match_id=target.id, position=SlotPosition.for_index(index)
                    )

    def _seed(self, graph: MatchGraph, teams: list[Team], winners_rounds: int) -> None:
        for index in range(self.winners_round_size(winners_rounds, 0)):
            match = graph.at(BracketSection.winners(0), index)
            for position, team_index in (
                (SlotPosition.A, index * 2),
                (SlotPosition.B, index * 2 + 1),
            ):
                if team_index < len(teams):
                    match.set_team(position, teams[team_index].id)
                else:
                    match.closed_slots.append(position)


def generate_bracket(
    tournament_id: str, teams: list[Team], format: TournamentFormat
) -> MatchGraph:
    """Generate a bracket with the default generator."""
    return BracketGenerator().generate(tournament_id, teams, format)
