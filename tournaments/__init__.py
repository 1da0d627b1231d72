"""Tournament bracket engine for Roblox Rivals competitions."""

from .manager import TournamentManager
from .database import TournamentDatabaseManager
from .api import TournamentAPI
from .bracket import BracketGenerator, generate_bracket
from .graph import MatchGraph
from .progression import MatchProgressionEngine, ProgressionOutcome
from .ratings import ProfileRatingService, RatingPolicy, RatingService
from .notifications import DiscordWebhookNotifier, NotificationSink, NullNotifier
from .exceptions import (
    BracketEngineError,
    InsufficientTeamsError,
    InvalidResultError,
    InvalidStateError,
    MatchNotFoundError,
    TournamentNotFoundError,
    ValidationError,
)
from .models import (
    Tournament,
    Team,
    Player,
    PlayerProfile,
    Match,
    MatchSlot,
    BracketSection,
    BracketSide,
    TournamentFormat,
    TournamentStatus,
    TeamSize,
    MatchStatus,
    TournamentCreateRequest,
    TournamentSummary,
    BracketData,
    RoundStatus,
    MatchReport,
)

__all__ = [
    "TournamentManager",
    "TournamentDatabaseManager",
    "TournamentAPI",
    "BracketGenerator",
    "generate_bracket",
    "MatchGraph",
    "MatchProgressionEngine",
    "ProgressionOutcome",
    "ProfileRatingService",
    "RatingPolicy",
    "RatingService",
    "DiscordWebhookNotifier",
    "NotificationSink",
    "NullNotifier",
    "BracketEngineError",
    "InsufficientTeamsError",
    "InvalidResultError",
    "InvalidStateError",
    "MatchNotFoundError",
    "TournamentNotFoundError",
    "ValidationError",
    "Tournament",
    "Team",
    "Player",
    "PlayerProfile",
    "Match",
    "MatchSlot",
    "BracketSection",
    "BracketSide",
    "TournamentFormat",
    "TournamentStatus",
    "TeamSize",
    "MatchStatus",
    "TournamentCreateRequest",
    "TournamentSummary",
    "BracketData",
    "RoundStatus",
    "MatchReport",
]
