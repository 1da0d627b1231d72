"""Exceptions raised by the bracket engine.

Every error is scoped to the single operation that raised it. A rejected
operation leaves the tournament and its match graph untouched.
"""


class BracketEngineError(Exception):
    """Base class for all bracket engine errors."""


class ValidationError(BracketEngineError):
    """Malformed input: negative score, missing id, unsupported format."""


class MatchNotFoundError(ValidationError):
    """A match id does not belong to the graph being updated."""

    def __init__(self, match_id: str):
        super().__init__(f"Match {match_id} not found")
        self.match_id = match_id


class TournamentNotFoundError(BracketEngineError):
    """No tournament exists with the requested id."""

    def __init__(self, tournament_id: str):
        super().__init__(f"Tournament {tournament_id} not found")
        self.tournament_id = tournament_id


class InvalidStateError(BracketEngineError):
    """Operation not allowed in the current match or tournament status."""


class InvalidResultError(BracketEngineError):
    """A completing result with a tie score or a winner outside the match."""


class InsufficientTeamsError(BracketEngineError):
    """Fewer than two teams are available to build a bracket."""

    def __init__(self, team_count: int):
        super().__init__(
            f"At least 2 teams are required to start, found {team_count}"
        )
        self.team_count = team_count
