"""Create the PostgreSQL tables and optionally import a flat-file snapshot."""

from __future__ import annotations

import logging
from pathlib import Path

from clashtracker.backend.config import configure_logging, load_settings
from clashtracker.backend.store import JsonFileTrackerStore, PostgresTrackerStore, TrackerStore

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("db_schema.sql")


def apply_schema(database_url: str) -> None:
    import psycopg

    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
        conn.commit()
    logger.info("Schema applied from %s", SCHEMA_PATH.name)


def import_data_file(data_file: str, target: TrackerStore) -> int:
    """Copy every player and the encounter from a JSON data file into ``target``."""
    source = JsonFileTrackerStore(path=Path(data_file))
    if not source.path.exists():
        logger.info("No data file at %s, nothing to import", source.path)
        return 0
    players, encounter = source.load_all()
    if not target.save_all(players, encounter):
        raise RuntimeError(f"Import of {source.path} failed")
    logger.info("Imported %d players from %s", len(players), source.path)
    return len(players)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    if not settings.database_url:
        raise RuntimeError("CLASHTRACKER_DATABASE_URL is required for migration")

    apply_schema(settings.database_url)
    if settings.data_file:
        import_data_file(settings.data_file, PostgresTrackerStore(database_url=settings.database_url))


if __name__ == "__main__":
    main()
