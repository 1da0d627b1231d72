"""Skill-based auto-balancing of solo signups into teams."""

import logging
import math

from .exceptions import ValidationError
from .models import Player, Team, TeamSize

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (builtin round() is banker's)."""
    return math.floor(value + 0.5)


def team_skill(players: list[Player]) -> int:
    """Rounded mean skill of a group of players."""
    return round_half_up(sum(p.rivals_level for p in players) / len(players))


def balance(pending_players: list[Player], team_size: TeamSize | int) -> list[Team]:
    """Form seeded teams from a pool of individual players.

    Players are ranked by skill, highest first. Solo teams keep that order.
    Duos are snake-paired: the strongest remaining player with the weakest
    remaining one, which evens out skill across teams. Larger teams are
    consecutive chunks of the ranking. Players left over when the pool does
    not divide evenly are not placed in any team.

    The returned order is the seed order and must not be changed by callers.
    """
    size = team_size.players if isinstance(team_size, TeamSize) else team_size
    if size < 1:
        raise ValidationError(f"Team size must be positive, got {size}")

    ranked = sorted(pending_players, key=lambda p: p.rivals_level, reverse=True)
    teams: list[Team] = []

    if size == 1:
        for player in ranked:
            teams.append(
                Team(name=player.username, players=[player], skill_level=player.rivals_level)
            )
    elif size == 2:
        low_index = len(ranked) - 1
        high_index = 0
        while low_index - high_index >= 1:
            high = ranked[high_index]
            low = ranked[low_index]
            teams.append(
                Team(
                    name=f"{high.username} & {low.username}",
                    players=[high, low],
                    skill_level=round_half_up((high.rivals_level + low.rivals_level) / 2),
                )
            )
            high_index += 1
            low_index -= 1
    else:
        for start in range(0, len(ranked) - size + 1, size):
            chunk = ranked[start : start + size]
            teams.append(
                Team(
                    name=f"Team {chunk[0].username}",
                    players=chunk,
                    skill_level=team_skill(chunk),
                )
            )

    leftover = len(ranked) - sum(len(t.players) for t in teams)
    if leftover:
        logger.warning(
            f"{leftover} player(s) left without a team (team size {size}, pool {len(ranked)})"
        )

    for seed, team in enumerate(teams, start=1):
        team.seed = seed

    logger.info(f"Balanced {len(ranked)} players into {len(teams)} teams of {size}")
    return teams
