"""Tournament management endpoints."""

import logging

from fastapi import APIRouter

from config.settings import AppConfig, get_default_config
from tournaments import (
    DiscordWebhookNotifier,
    NullNotifier,
    ProfileRatingService,
    RatingPolicy,
    TournamentAPI,
    TournamentDatabaseManager,
    TournamentManager,
)
from tournaments.models import (
    MatchScoreRequest,
    PlayerRegistrationRequest,
    TeamCreateRequest,
    TournamentCreateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Tournament endpoints
tournament_manager: TournamentManager | None = None
tournament_api: TournamentAPI | None = None


def build_tournament_manager(config: AppConfig) -> TournamentManager:
    """Wire the manager to its database, rating service and notifier."""
    db = TournamentDatabaseManager(db_path=config.system.db_path)

    rating_service = None
    if config.ratings.enabled:
        rating_service = ProfileRatingService(db, default_rating=config.ratings.default_rating)

    webhook_url = config.notifications.resolved_webhook_url()
    if config.notifications.enabled and webhook_url:
        notifier = DiscordWebhookNotifier(
            webhook_url,
            timeout=config.notifications.timeout,
            footer=config.notifications.footer,
        )
    else:
        if config.notifications.enabled:
            logger.warning("Notifications enabled but no Discord webhook URL configured")
        notifier = NullNotifier()

    return TournamentManager(
        db,
        rating_service=rating_service,
        notifier=notifier,
        rating_policy=RatingPolicy(
            win_delta=config.ratings.win_delta,
            loss_delta=config.ratings.loss_delta,
        ),
    )


def get_tournament_api() -> TournamentAPI:
    """Get or create tournament API instance."""
    global tournament_manager, tournament_api
    if tournament_api is None:
        config = get_default_config()
        tournament_manager = build_tournament_manager(config)
        tournament_api = TournamentAPI(tournament_manager)
        logger.info(f"Tournament API ready (database: {config.system.db_path})")

    return tournament_api


@router.post("/tournaments")
async def create_tournament(request: TournamentCreateRequest):
    """Create a new tournament."""
    api = get_tournament_api()
    return await api.create_tournament(request)


@router.get("/tournaments")
async def list_tournaments(limit: int | None = None, offset: int = 0):
    """List all tournaments."""
    api = get_tournament_api()
    return await api.list_tournaments(limit, offset)


@router.get("/tournaments/{tournament_id}")
async def get_tournament(tournament_id: str):
    """Get tournament details."""
    api = get_tournament_api()
    return await api.get_tournament(tournament_id)


@router.post("/tournaments/{tournament_id}/open")
async def open_registration(tournament_id: str):
    """Open a draft tournament for registration."""
    api = get_tournament_api()
    return await api.open_registration(tournament_id)


@router.delete("/tournaments/{tournament_id}")
async def delete_tournament(tournament_id: str):
    """Delete a tournament and all related data."""
    api = get_tournament_api()
    return await api.delete_tournament(tournament_id)


@router.post("/tournaments/{tournament_id}/players")
async def register_player(tournament_id: str, request: PlayerRegistrationRequest):
    """Sign up an individual player."""
    api = get_tournament_api()
    return await api.register_player(tournament_id, request)


@router.delete("/tournaments/{tournament_id}/players/{player_id}")
async def remove_player(tournament_id: str, player_id: str):
    api = get_tournament_api()
    return await api.remove_player(tournament_id, player_id)


@router.post("/tournaments/{tournament_id}/teams")
async def add_team(tournament_id: str, request: TeamCreateRequest):
    """Register a pre-made team."""
    api = get_tournament_api()
    return await api.add_team(tournament_id, request)


@router.delete("/tournaments/{tournament_id}/teams/{team_id}")
async def remove_team(tournament_id: str, team_id: str):
    api = get_tournament_api()
    return await api.remove_team(tournament_id, team_id)


@router.post("/tournaments/{tournament_id}/start")
async def start_tournament(tournament_id: str):
    """Start a tournament."""
    api = get_tournament_api()
    return await api.start_tournament(tournament_id)


@router.get("/tournaments/{tournament_id}/bracket")
async def get_tournament_bracket(tournament_id: str):
    """Get tournament bracket visualization data."""
    api = get_tournament_api()
    return await api.get_bracket(tournament_id)


@router.get("/tournaments/{tournament_id}/matches")
async def get_tournament_matches(tournament_id: str):
    """Get tournament matches."""
    api = get_tournament_api()
    return await api.get_matches(tournament_id)


@router.get("/tournaments/{tournament_id}/rounds/{round_index}/status")
async def get_round_status(tournament_id: str, round_index: int):
    """Get status of all matches in a specific round."""
    api = get_tournament_api()
    return await api.get_round_status(tournament_id, round_index)


@router.post("/tournaments/{tournament_id}/matches/{match_id}/start")
async def start_match(tournament_id: str, match_id: str):
    api = get_tournament_api()
    return await api.start_match(tournament_id, match_id)


@router.post("/tournaments/{tournament_id}/matches/{match_id}/result")
async def report_match_result(
    tournament_id: str, match_id: str, request: MatchScoreRequest
):
    """Update scores, or finish the match when `complete` is set."""
    api = get_tournament_api()
    return await api.report_result(tournament_id, match_id, request)
