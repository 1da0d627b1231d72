"""Tournament database operations."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from .models import (
    BracketSection,
    BracketSide,
    Match,
    MatchSlot,
    MatchStatus,
    Player,
    PlayerProfile,
    SlotPosition,
    Team,
    TeamSize,
    Tournament,
    TournamentFormat,
    TournamentStatus,
    TournamentSummary,
)
from .repository import TournamentRepository
from .schema import SchemaManager

logger = logging.getLogger(__name__)

# Match fields that may be changed through update_match, mapped to columns
MATCH_UPDATE_COLUMNS = {
    "team_a_id": "team_a_id",
    "team_b_id": "team_b_id",
    "score_a": "score_a",
    "score_b": "score_b",
    "winner_id": "winner_id",
    "status": "status",
}


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class TournamentDatabaseManager(TournamentRepository):
    """Manages SQLite database operations for tournaments and player profiles."""

    def __init__(self, db_path: str | Path = "tournaments.db"):
        self.db_path = Path(db_path)
        self._initialize()

    def _initialize(self) -> None:
        with self._get_connection() as conn:
            SchemaManager().initialize_database_schema(conn.cursor())
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable column access by name
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Tournament database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    # Tournaments

    def create_tournament(self, tournament: Tournament) -> str:
        """Create a new tournament and return its ID."""
        created_at = tournament.created_at or datetime.now()
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO tournaments (
                    id, name, description, game, format, team_size, max_teams,
                    status, start_date, prize_pool, winner_team_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    tournament.id,
                    tournament.name,
                    tournament.description,
                    tournament.game,
                    tournament.format.value,
                    tournament.team_size.value,
                    tournament.max_teams,
                    tournament.status.value,
                    _timestamp(tournament.start_date),
                    tournament.prize_pool,
                    tournament.winner_team_id,
                    _timestamp(created_at),
                ),
            )
            conn.commit()

        logger.info(f"Created tournament {tournament.id}: {tournament.name}")
        return tournament.id

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        """Get tournament by ID, with teams, pending players and matches."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM tournaments WHERE id = ?", (tournament_id,)
            ).fetchone()

            if not row:
                return None

            teams = self._load_teams(conn, tournament_id)
            pending = self._load_pending_players(conn, tournament_id)
            matches = self._load_matches(conn, tournament_id)

        return Tournament(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            game=row["game"],
            format=TournamentFormat(row["format"]),
            team_size=TeamSize(row["team_size"]),
            max_teams=row["max_teams"],
            status=TournamentStatus(row["status"]),
            start_date=row["start_date"],
            prize_pool=row["prize_pool"],
            winner_team_id=row["winner_team_id"],
            created_at=row["created_at"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            teams=teams,
            pending_players=pending,
            matches=matches,
        )

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0
    ) -> list[TournamentSummary]:
        """List tournaments with summary information."""
        query = """
            SELECT id, name, format, team_size, status, max_teams, created_at,
                   winner_team_id
            FROM tournaments
            ORDER BY created_at DESC
        """
        params: list[Any] = []
        if limit:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            TournamentSummary(
                id=row["id"],
                name=row["name"],
                format=TournamentFormat(row["format"]),
                team_size=TeamSize(row["team_size"]),
                status=TournamentStatus(row["status"]),
                max_teams=row["max_teams"],
                created_at=row["created_at"],
                winner_team_id=row["winner_team_id"],
            )
            for row in rows
        ]

    def update_tournament_status(
        self, tournament_id: str, status: TournamentStatus, **kwargs: Any
    ) -> bool:
        """Update tournament status and optional fields."""
        with self._get_connection() as conn:
            updated = self._write_status(conn, tournament_id, status, kwargs)
            conn.commit()
        return updated

    @staticmethod
    def _write_status(
        conn: sqlite3.Connection,
        tournament_id: str,
        status: TournamentStatus,
        fields: dict[str, Any],
    ) -> bool:
        set_clauses = ["status = ?"]
        params: list[Any] = [status.value]

        for column in ("started_at", "completed_at"):
            if column in fields:
                set_clauses.append(f"{column} = ?")
                params.append(_timestamp(fields[column]))

        if "winner_team_id" in fields:
            set_clauses.append("winner_team_id = ?")
            params.append(fields["winner_team_id"])

        params.append(tournament_id)

        cursor = conn.execute(
            f"UPDATE tournaments SET {', '.join(set_clauses)} WHERE id = ?",
            params,
        )
        updated = cursor.rowcount > 0
        if updated:
            logger.info(f"Updated tournament {tournament_id} status to {status.value}")
        return updated

    def delete_tournament(self, tournament_id: str) -> bool:
        """Delete tournament and all related data."""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM tournaments WHERE id = ?", (tournament_id,))
            deleted = cursor.rowcount > 0
            conn.commit()

        if deleted:
            logger.info(f"Deleted tournament {tournament_id}")
        return deleted

    # Teams

    def save_teams(self, tournament_id: str, teams: list[Team]) -> None:
        """Insert or replace teams and their members in one transaction."""
        with self._get_connection() as conn:
            next_position = conn.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 FROM teams WHERE tournament_id = ?",
                (tournament_id,),
            ).fetchone()[0]

            for team in teams:
                existing = conn.execute(
                    "SELECT position FROM teams WHERE id = ?", (team.id,)
                ).fetchone()
                if existing:
                    position = existing["position"]
                else:
                    position = next_position
                    next_position += 1

                conn.execute(
                    """
                    INSERT INTO teams (id, tournament_id, name, seed, skill_level, position)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT (id) DO UPDATE SET
                        name = excluded.name,
                        seed = excluded.seed,
                        skill_level = excluded.skill_level
                    """,
                    (team.id, tournament_id, team.name, team.seed, team.skill_level, position),
                )
                conn.execute("DELETE FROM team_members WHERE team_id = ?", (team.id,))
                conn.executemany(
                    """
                    INSERT INTO team_members (
                        team_id, player_id, username, rivals_level, rating, member_order
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (team.id, p.id, p.username, p.rivals_level, p.rating, order)
                        for order, p in enumerate(team.players)
                    ],
                )
            conn.commit()

        logger.info(f"Saved {len(teams)} teams for tournament {tournament_id}")

    def delete_team(self, tournament_id: str, team_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM teams WHERE id = ? AND tournament_id = ?",
                (team_id, tournament_id),
            )
            deleted = cursor.rowcount > 0
            conn.commit()
        return deleted

    def _load_teams(self, conn: sqlite3.Connection, tournament_id: str) -> list[Team]:
        team_rows = conn.execute(
            "SELECT * FROM teams WHERE tournament_id = ? ORDER BY position",
            (tournament_id,),
        ).fetchall()

        teams = []
        for row in team_rows:
            members = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? ORDER BY member_order",
                (row["id"],),
            ).fetchall()
            teams.append(
                Team(
                    id=row["id"],
                    name=row["name"],
                    seed=row["seed"],
                    skill_level=row["skill_level"],
                    players=[
                        Player(
                            id=m["player_id"],
                            username=m["username"],
                            rivals_level=m["rivals_level"],
                            rating=m["rating"],
                        )
                        for m in members
                    ],
                )
            )
        return teams

    # Pending players

    def add_pending_player(self, tournament_id: str, player: Player) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO pending_players (id, tournament_id, username, rivals_level, rating)
                VALUES (?, ?, ?, ?, ?)
                """,
                (player.id, tournament_id, player.username, player.rivals_level, player.rating),
            )
            conn.commit()

    def remove_pending_player(self, tournament_id: str, player_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM pending_players WHERE tournament_id = ? AND id = ?",
                (tournament_id, player_id),
            )
            removed = cursor.rowcount > 0
            conn.commit()
        return removed

    def get_pending_players(self, tournament_id: str) -> list[Player]:
        with self._get_connection() as conn:
            return self._load_pending_players(conn, tournament_id)

    def clear_pending_players(self, tournament_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "DELETE FROM pending_players WHERE tournament_id = ?", (tournament_id,)
            )
            conn.commit()

    def _load_pending_players(
        self, conn: sqlite3.Connection, tournament_id: str
    ) -> list[Player]:
        rows = conn.execute(
            "SELECT * FROM pending_players WHERE tournament_id = ? ORDER BY seq",
            (tournament_id,),
        ).fetchall()
        return [
            Player(
                id=row["id"],
                username=row["username"],
                rivals_level=row["rivals_level"],
                rating=row["rating"],
            )
            for row in rows
        ]

    # Matches

    def save_matches(
        self,
        tournament_id: str,
        matches: list[Match],
        tournament_status: TournamentStatus | None = None,
        **status_fields: Any,
    ) -> None:
        """Insert or replace matches in a single transaction.

        With `tournament_status` the tournament row is updated in the same
        transaction, so a finished bracket and its winner land together.
        """
        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO matches (
                    id, tournament_id, bracket_side, round_number, match_index,
                    team_a_id, team_b_id, score_a, score_b, winner_id, status,
                    next_match_id, next_match_position, loser_match_id,
                    loser_match_position, closed_slots
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [self._match_params(tournament_id, match) for match in matches],
            )
            if tournament_status is not None:
                self._write_status(conn, tournament_id, tournament_status, status_fields)
            conn.commit()

        logger.debug(f"Saved {len(matches)} matches for tournament {tournament_id}")

    def update_match(self, match_id: str, **fields: Any) -> bool:
        """Update match columns by field name."""
        unknown = set(fields) - set(MATCH_UPDATE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update match fields: {sorted(unknown)}")
        if not fields:
            return False

        set_clauses = []
        params: list[Any] = []
        for name, value in fields.items():
            set_clauses.append(f"{MATCH_UPDATE_COLUMNS[name]} = ?")
            params.append(value.value if isinstance(value, MatchStatus) else value)
        params.append(match_id)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"UPDATE matches SET {', '.join(set_clauses)} WHERE id = ?", params
            )
            updated = cursor.rowcount > 0
            conn.commit()

        if updated:
            logger.debug(f"Updated match {match_id}: {sorted(fields)}")
        return updated

    def get_matches(self, tournament_id: str) -> list[Match]:
        with self._get_connection() as conn:
            return self._load_matches(conn, tournament_id)

    def _load_matches(self, conn: sqlite3.Connection, tournament_id: str) -> list[Match]:
        rows = conn.execute(
            "SELECT * FROM matches WHERE tournament_id = ?", (tournament_id,)
        ).fetchall()
        matches = [self._row_to_match(row) for row in rows]
        matches.sort(key=lambda m: (m.section.round_index, m.match_index))
        return matches

    @staticmethod
    def _match_params(tournament_id: str, match: Match) -> tuple[Any, ...]:
        return (
            match.id,
            tournament_id,
            match.section.side.value,
            match.section.round,
            match.match_index,
            match.team_a_id,
            match.team_b_id,
            match.score_a,
            match.score_b,
            match.winner_id,
            match.status.value,
            match.advance_to.match_id if match.advance_to else None,
            match.advance_to.position.value if match.advance_to else None,
            match.drop_to.match_id if match.drop_to else None,
            match.drop_to.position.value if match.drop_to else None,
            "".join(p.value for p in match.closed_slots),
        )

    @staticmethod
    def _row_to_match(row: sqlite3.Row) -> Match:
        advance_to = None
        if row["next_match_id"]:
            advance_to = MatchSlot(
                match_id=row["next_match_id"],
                position=SlotPosition(row["next_match_position"]),
            )
        drop_to = None
        if row["loser_match_id"]:
            drop_to = MatchSlot(
                match_id=row["loser_match_id"],
                position=SlotPosition(row["loser_match_position"]),
            )

        return Match(
            id=row["id"],
            tournament_id=row["tournament_id"],
            section=BracketSection(
                side=BracketSide(row["bracket_side"]), round=row["round_number"]
            ),
            match_index=row["match_index"],
            team_a_id=row["team_a_id"],
            team_b_id=row["team_b_id"],
            score_a=row["score_a"],
            score_b=row["score_b"],
            winner_id=row["winner_id"],
            status=MatchStatus(row["status"]),
            advance_to=advance_to,
            drop_to=drop_to,
            closed_slots=[SlotPosition(c) for c in row["closed_slots"]],
        )

    # Player profiles

    def get_profile(self, player_id: str) -> PlayerProfile | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM player_profiles WHERE id = ?", (player_id,)
            ).fetchone()

        return self._row_to_profile(row) if row else None

    def save_profile(self, profile: PlayerProfile) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO player_profiles (
                    id, username, wins, losses, matches_played, rating, rank, achievements
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.id,
                    profile.username,
                    profile.wins,
                    profile.losses,
                    profile.matches_played,
                    profile.rating,
                    profile.rank,
                    json.dumps(profile.achievements),
                ),
            )
            conn.commit()

    def list_profiles(self) -> list[PlayerProfile]:
        """Profiles ordered for the leaderboard, best rating first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM player_profiles ORDER BY rating DESC, wins DESC, username"
            ).fetchall()
        return [self._row_to_profile(row) for row in rows]

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> PlayerProfile:
        return PlayerProfile(
            id=row["id"],
            username=row["username"],
            wins=row["wins"],
            losses=row["losses"],
            matches_played=row["matches_played"],
            rating=row["rating"],
            rank=row["rank"],
            achievements=json.loads(row["achievements"] or "[]"),
        )
