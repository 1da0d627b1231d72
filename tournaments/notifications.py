"""Outbound tournament notifications."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx

from .models import Match, Tournament

logger = logging.getLogger(__name__)

# Embed colors
VIOLET = 0x8B5CF6
CYAN = 0x22D3EE
GOLD = 0xFACC15

TROPHY_ICON_URL = "https://cdn-icons-png.flaticon.com/512/2583/2583344.png"


class NotificationSink(ABC):
    """Fire-and-forget event sink. Implementations must not raise."""

    @abstractmethod
    async def notify_tournament_created(self, tournament: Tournament) -> None:
        """Announce a tournament that opened for registration."""

    @abstractmethod
    async def notify_match_complete(
        self, tournament_name: str, match: Match, team_names: dict[str, str]
    ) -> None:
        """Announce a decided match."""

    @abstractmethod
    async def notify_champion(self, tournament: Tournament, winner_name: str) -> None:
        """Announce the tournament winner."""


class NullNotifier(NotificationSink):
    """Sink used when no delivery channel is configured."""

    async def notify_tournament_created(self, tournament: Tournament) -> None:
        logger.debug(f"Notifications disabled: tournament {tournament.id} created")

    async def notify_match_complete(
        self, tournament_name: str, match: Match, team_names: dict[str, str]
    ) -> None:
        logger.debug(f"Notifications disabled: match {match.id} completed")

    async def notify_champion(self, tournament: Tournament, winner_name: str) -> None:
        logger.debug(f"Notifications disabled: {winner_name} won {tournament.name}")


class DiscordWebhookNotifier(NotificationSink):
    """Posts embeds to a Discord webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        footer: str = "Rivals Arena",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.footer = footer
        self._transport = transport

    async def send_embed(self, embed: dict[str, Any]) -> bool:
        """Post one embed. Returns True when Discord accepted it."""
        if not self.webhook_url:
            logger.warning("Discord webhook URL not set, skipping notification")
            return False

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json={"embeds": [embed]})
                response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send Discord webhook: {e}")
            return False

    async def notify_tournament_created(self, tournament: Tournament) -> None:
        fields = [
            {"name": "Format", "value": _format_name(tournament), "inline": True},
            {"name": "Team Size", "value": tournament.team_size.value, "inline": True},
        ]
        if tournament.prize_pool:
            fields.append({"name": "Prize Pool", "value": tournament.prize_pool, "inline": True})
        if tournament.start_date:
            fields.append(
                {
                    "name": "Start Date",
                    "value": tournament.start_date.date().isoformat(),
                    "inline": True,
                }
            )

        await self.send_embed(
            {
                "title": "🏆 New Tournament Created!",
                "description": f"**{tournament.name}** is now open for registration!",
                "color": VIOLET,
                "fields": fields,
                "footer": {"text": f"{self.footer} • Tournament OS"},
                "timestamp": _now(),
            }
        )

    async def notify_match_complete(
        self, tournament_name: str, match: Match, team_names: dict[str, str]
    ) -> None:
        if not match.winner_id or not match.is_filled:
            return

        loser_id = match.opponent_of(match.winner_id)
        winner_name = team_names.get(match.winner_id, match.winner_id)
        loser_name = team_names.get(loser_id or "", loser_id or "?")

        await self.send_embed(
            {
                "title": "⚔️ Match Finished",
                "description": f"**{winner_name}** defeated **{loser_name}** in {tournament_name}!",
                "color": CYAN,
                "fields": [
                    {"name": "Score", "value": f"`{match.score_a} - {match.score_b}`", "inline": True},
                    {"name": "Round", "value": match.section.label, "inline": True},
                ],
                "footer": {"text": f"{self.footer} • Live Updates"},
                "timestamp": _now(),
            }
        )

    async def notify_champion(self, tournament: Tournament, winner_name: str) -> None:
        await self.send_embed(
            {
                "title": "👑 Tournament Champion!",
                "description": (
                    f"Congratulations to **{winner_name}** for winning **{tournament.name}**!"
                ),
                "color": GOLD,
                "thumbnail": {"url": TROPHY_ICON_URL},
                "footer": {"text": f"{self.footer} • Hall of Fame"},
                "timestamp": _now(),
            }
        )


def _format_name(tournament: Tournament) -> str:
    return tournament.format.value.replace("_", " ").title()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
