"""Applies the SQL files in ``versions/`` once each, in filename order."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"


class MigrationRunner:
    """Run pending ``NNN_name.sql`` migrations and record them.

    Applied versions live in ``schema_migrations``; each file runs inside
    its own transaction together with its tracking row.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool, versions_dir: Path | None = None) -> None:
        self.pool = pool
        self.versions_dir = versions_dir or VERSIONS_DIR

    def pending(self, applied: set[str]) -> list[Path]:
        """SQL files in the versions directory not yet in *applied*."""
        return [p for p in sorted(self.versions_dir.glob("*.sql")) if p.stem not in applied]

    async def run_pending(self) -> list[str]:
        """Apply every pending migration. Returns the versions applied."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                    version    TEXT PRIMARY KEY,
                    name       TEXT NOT NULL,
                    applied_at TIMESTAMPTZ DEFAULT NOW()
                )
                """
            )
            rows = await conn.fetch(f"SELECT version FROM {self.TRACKING_TABLE}")  # noqa: S608
            applied = {row["version"] for row in rows}

            done: list[str] = []
            for sql_path in self.pending(applied):
                logger.info("Applying migration: %s", sql_path.stem)
                async with conn.transaction():
                    await conn.execute(sql_path.read_text(encoding="utf-8"))
                    await conn.execute(
                        f"INSERT INTO {self.TRACKING_TABLE} (version, name) VALUES ($1, $2)",
                        sql_path.stem,
                        sql_path.name,
                    )
                done.append(sql_path.stem)

        if done:
            logger.info("Applied %d migration(s): %s", len(done), ", ".join(done))
        else:
            logger.info("Config store schema is up to date")
        return done
