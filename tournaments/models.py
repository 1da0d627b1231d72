"""Tournament system data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Legacy round banding, kept for display ordering and storage compatibility
LOSERS_ROUND_OFFSET = 100
GRAND_FINAL_ROUND_INDEX = 200


def new_id() -> str:
    """Generate an opaque, stable entity id."""
    return str(uuid.uuid4())


class TournamentFormat(Enum):
    """Bracket format of a tournament."""

    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    ROUND_ROBIN = "round_robin"  # Declared only, generation rejects it


class TeamSize(Enum):
    """Team size class of a tournament."""

    SOLO = "1v1"
    DUO = "2v2"
    SQUAD = "5v5"

    @property
    def players(self) -> int:
        """Number of players per team."""
        return {"1v1": 1, "2v2": 2, "5v5": 5}[self.value]


class TournamentStatus(Enum):
    """Tournament lifecycle status."""

    DRAFT = "draft"
    OPEN = "open"
    ACTIVE = "active"
    COMPLETED = "completed"


class MatchStatus(Enum):
    """Individual match status."""

    PENDING = "pending"  # Waiting for participants
    READY = "ready"  # Both participants set, result may be reported
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BYE = "bye"  # Walkover, never played


class BracketSide(Enum):
    """Which half of the bracket a match belongs to."""

    WINNERS = "winners"
    LOSERS = "losers"
    GRAND_FINAL = "grand_final"


class SlotPosition(Enum):
    """Participant slot of a match."""

    A = "A"
    B = "B"

    @classmethod
    def for_index(cls, match_index: int) -> "SlotPosition":
        """Even match indexes feed slot A, odd ones slot B."""
        return cls.A if match_index % 2 == 0 else cls.B


class BracketSection(BaseModel):
    """Round of a bracket, tagged with the bracket half it belongs to."""

    model_config = ConfigDict(frozen=True)

    side: BracketSide = BracketSide.WINNERS
    round: int = Field(default=0, ge=0)

    @classmethod
    def winners(cls, round_number: int) -> "BracketSection":
        return cls(side=BracketSide.WINNERS, round=round_number)

    @classmethod
    def losers(cls, round_number: int) -> "BracketSection":
        return cls(side=BracketSide.LOSERS, round=round_number)

    @classmethod
    def grand_final(cls) -> "BracketSection":
        return cls(side=BracketSide.GRAND_FINAL, round=0)

    @classmethod
    def from_round_index(cls, round_index: int) -> "BracketSection":
        """Decode a legacy banded round index (0.., 100.., 200)."""
        if round_index >= GRAND_FINAL_ROUND_INDEX:
            return cls.grand_final()
        if round_index >= LOSERS_ROUND_OFFSET:
            return cls.losers(round_index - LOSERS_ROUND_OFFSET)
        return cls.winners(round_index)

    @property
    def round_index(self) -> int:
        """Legacy banded round index, used for ordering and display."""
        if self.side == BracketSide.GRAND_FINAL:
            return GRAND_FINAL_ROUND_INDEX
        if self.side == BracketSide.LOSERS:
            return LOSERS_ROUND_OFFSET + self.round
        return self.round

    @property
    def label(self) -> str:
        if self.side == BracketSide.GRAND_FINAL:
            return "Grand Final"
        if self.side == BracketSide.LOSERS:
            return f"Losers Round {self.round + 1}"
        return f"Round {self.round + 1}"


class MatchSlot(BaseModel):
    """Edge target: a slot in a downstream match."""

    model_config = ConfigDict(frozen=True)

    match_id: str
    position: SlotPosition


class Player(BaseModel):
    """Registered player."""

    id: str = Field(default_factory=new_id)
    username: str = Field(..., min_length=1)
    rivals_level: int = Field(default=1, ge=1, le=500, description="Skill, 1-500")
    rating: int = Field(default=1000, description="Managed by the rating service")


class Team(BaseModel):
    """Team of one or more players."""

    id: str = Field(default_factory=new_id)
    name: str
    players: list[Player] = Field(default_factory=list)
    seed: int | None = None  # Display only
    skill_level: int | None = None  # Rounded mean of member skill

    @property
    def player_ids(self) -> list[str]:
        return [player.id for player in self.players]


class PlayerProfile(BaseModel):
    """Career record kept by the rating service."""

    id: str
    username: str
    wins: int = 0
    losses: int = 0
    matches_played: int = 0
    rating: int = 1000
    rank: str = "Unranked"
    achievements: list[str] = Field(default_factory=list)


class Match(BaseModel):
    """Node of the match graph."""

    id: str = Field(default_factory=new_id)
    tournament_id: str
    section: BracketSection
    match_index: int = Field(ge=0)
    team_a_id: str | None = None  # None until the slot is filled
    team_b_id: str | None = None
    score_a: int = Field(default=0, ge=0)
    score_b: int = Field(default=0, ge=0)
    winner_id: str | None = None
    status: MatchStatus = MatchStatus.PENDING
    advance_to: MatchSlot | None = None  # Where the winner goes
    drop_to: MatchSlot | None = None  # Where the loser goes (double elimination)
    closed_slots: list[SlotPosition] = Field(
        default_factory=list, description="Slots no feeder can ever fill"
    )

    def team_in(self, position: SlotPosition) -> str | None:
        return self.team_a_id if position == SlotPosition.A else self.team_b_id

    def set_team(self, position: SlotPosition, team_id: str | None) -> None:
        if position == SlotPosition.A:
            self.team_a_id = team_id
        else:
            self.team_b_id = team_id

    def is_closed(self, position: SlotPosition) -> bool:
        return position in self.closed_slots

    @property
    def team_ids(self) -> list[str]:
        return [t for t in (self.team_a_id, self.team_b_id) if t is not None]

    @property
    def is_filled(self) -> bool:
        return self.team_a_id is not None and self.team_b_id is not None

    @property
    def is_void(self) -> bool:
        """Both slots closed: nobody will ever play here."""
        return len(self.closed_slots) == 2

    @property
    def is_terminal(self) -> bool:
        return self.advance_to is None

    def has_team(self, team_id: str) -> bool:
        return team_id in self.team_ids

    def opponent_of(self, team_id: str) -> str | None:
        if team_id == self.team_a_id:
            return self.team_b_id
        if team_id == self.team_b_id:
            return self.team_a_id
        return None

    @property
    def loser_id(self) -> str | None:
        if self.status != MatchStatus.COMPLETED or self.winner_id is None:
            return None
        return self.opponent_of(self.winner_id)


class Tournament(BaseModel):
    """Complete tournament information."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    game: str = "Roblox Rivals"
    format: TournamentFormat = TournamentFormat.SINGLE_ELIMINATION
    team_size: TeamSize = TeamSize.SOLO
    max_teams: int = Field(default=16, ge=2)
    status: TournamentStatus = TournamentStatus.OPEN
    start_date: datetime | None = None
    prize_pool: str = ""
    teams: list[Team] = Field(default_factory=list)
    pending_players: list[Player] = Field(default_factory=list)
    matches: list[Match] = Field(default_factory=list)
    winner_team_id: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def rounds(self) -> dict[BracketSection, list[Match]]:
        """Matches grouped by round in bracket order."""
        ordered = sorted(
            self.matches, key=lambda m: (m.section.round_index, m.match_index)
        )
        grouped: dict[BracketSection, list[Match]] = {}
        for match in ordered:
            grouped.setdefault(match.section, []).append(match)
        return grouped

    def find_match(self, match_id: str) -> Match | None:
        return next((m for m in self.matches if m.id == match_id), None)

    def find_team(self, team_id: str | None) -> Team | None:
        if team_id is None:
            return None
        return next((t for t in self.teams if t.id == team_id), None)


class TournamentCreateRequest(BaseModel):
    """Request to create a new tournament."""

    name: str = Field(..., min_length=1, description="Tournament name")
    description: str = Field(default="", description="Free text shown to players")
    format: TournamentFormat = Field(default=TournamentFormat.SINGLE_ELIMINATION)
    team_size: TeamSize = Field(default=TeamSize.SOLO)
    max_teams: int = Field(default=16, ge=2, description="Maximum number of teams")
    start_date: datetime | None = None
    prize_pool: str = ""
    draft: bool = Field(default=False, description="Create as draft, closed to signups")


class PlayerRegistrationRequest(BaseModel):
    """Individual signup into a tournament's pending pool."""

    username: str = Field(..., min_length=1)
    rivals_level: int = Field(default=1, ge=1, le=500)
    player_id: str | None = Field(
        default=None, description="Id from the profile service, generated if absent"
    )

    def to_player(self) -> Player:
        if self.player_id:
            return Player(
                id=self.player_id,
                username=self.username,
                rivals_level=self.rivals_level,
            )
        return Player(username=self.username, rivals_level=self.rivals_level)


class TeamCreateRequest(BaseModel):
    """Admin-created team."""

    name: str = Field(..., min_length=1)
    players: list[PlayerRegistrationRequest] = Field(..., min_length=1)


class MatchScoreRequest(BaseModel):
    """Score or result report for a match."""

    score_a: int = Field(default=0, ge=0)
    score_b: int = Field(default=0, ge=0)
    winner_id: str | None = None
    complete: bool = False


class MatchReport(BaseModel):
    """Outcome of a reported match result."""

    match: Match
    updated_match_ids: list[str]
    tournament_status: TournamentStatus
    champion_team_id: str | None = None
    unlocked_achievements: dict[str, list[str]] = Field(default_factory=dict)


class BracketData(BaseModel):
    """Tournament bracket visualization data."""

    tournament: Tournament
    teams: list[Team]
    matches: list[Match]


class TournamentSummary(BaseModel):
    """Tournament summary for listing."""

    id: str
    name: str
    format: TournamentFormat
    team_size: TeamSize
    status: TournamentStatus
    max_teams: int
    created_at: datetime | None = None
    winner_team_id: str | None = None


class RoundStatus(BaseModel):
    """Status of all matches in a round."""

    section: BracketSection
    total_matches: int
    completed_matches: int
    pending_matches: int
    ready_matches: int
    in_progress_matches: int
    bye_matches: int
    all_completed: bool
