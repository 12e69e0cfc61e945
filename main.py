"""Entry point for the users GraphQL service."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Tuple

from app.config import Settings, StartupError, load_rate_table, load_settings
from app.database import Database, StoreError
from app.service import GRAPHQL_PATH

logger = logging.getLogger("users.main")


def _initialise_database(settings: Settings) -> Database:
    try:
        database = Database(settings.database_path)
        database.initialize()
        asyncio.run(database.ping())
    except (OSError, StoreError) as exc:
        raise StartupError(f"Store is unreachable: {exc}") from exc
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _bootstrap(settings: Settings) -> Tuple[Database, Dict[str, float]]:
    rates = load_rate_table(settings.rates_path)
    database = _initialise_database(settings)
    return database, rates


def _serve(*, settings: Settings, database: Database, rates: Dict[str, float]) -> None:
    from app.service import create_app
    import uvicorn

    app = create_app(database=database, rates=rates)
    logger.info("GraphQL running at http://localhost:%s%s", settings.port, GRAPHQL_PATH)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


def main() -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        settings = load_settings()
        database, rates = _bootstrap(settings)
    except StartupError as exc:
        logger.error("Startup failed: %s", exc)
        raise SystemExit(1) from exc

    _serve(settings=settings, database=database, rates=rates)


if __name__ == "__main__":
    main()
