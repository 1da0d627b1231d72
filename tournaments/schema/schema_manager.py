"""Applies the tournament SQL schema files in dependency order."""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# Parents before children so foreign keys resolve; indexes last
TABLE_FILES = (
    "tournaments.sql",
    "teams.sql",
    "team_members.sql",
    "pending_players.sql",
    "matches.sql",
    "player_profiles.sql",
    "indexes.sql",
)


class SchemaManager:
    """Runs the `tables/*.sql` files that make up the tournament database."""

    def __init__(self, schema_dir: Path | None = None):
        self.tables_dir = (schema_dir or Path(__file__).parent) / "tables"
        self.table_files = list(TABLE_FILES)

    def missing_files(self) -> list[str]:
        return [name for name in self.table_files if not (self.tables_dir / name).exists()]

    def validate_schema_files(self) -> bool:
        """True when every schema file is present."""
        missing = self.missing_files()
        if missing:
            logger.error(f"Missing schema files in {self.tables_dir}: {missing}")
        return not missing

    def statements(self, filename: str) -> list[str]:
        """Split one schema file into executable statements."""
        sql = (self.tables_dir / filename).read_text(encoding="utf-8")
        return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]

    def initialize_database_schema(self, cursor: sqlite3.Cursor) -> None:
        """Create all tables and indexes.

        Every file is checked before the first statement runs, so a broken
        install leaves the database untouched.
        """
        if not self.validate_schema_files():
            raise FileNotFoundError(
                f"Tournament schema incomplete, missing: {self.missing_files()}"
            )

        for filename in self.table_files:
            try:
                for statement in self.statements(filename):
                    cursor.execute(statement)
            except sqlite3.Error as e:
                logger.error(f"Failed to apply schema file {filename}: {e}")
                raise
            logger.debug(f"Applied schema file: {filename}")

        logger.info(f"Tournament schema ready ({len(self.table_files)} files)")
