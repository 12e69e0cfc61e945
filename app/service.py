"""HTTP and WebSocket application serving the users GraphQL API."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from fastapi import FastAPI
from strawberry.fastapi import GraphQLRouter

from .database import Database, resolve_database_path
from .events import EventBus
from .schema import GraphQLContext, schema

logger = logging.getLogger("users.service")

GRAPHQL_PATH = "/graphql"


def _initialise_database(database: Database) -> Database:
    database.initialize()
    return database


def build_graphql_router(database: Database, bus: EventBus) -> GraphQLRouter:
    """Return a GraphQL router whose resolvers share ``database`` and ``bus``."""

    async def get_context() -> GraphQLContext:
        return GraphQLContext(database=database, bus=bus)

    return GraphQLRouter(schema, context_getter=get_context)


def create_app(
    *,
    database: Database | None = None,
    bus: EventBus | None = None,
    rates: Optional[Dict[str, float]] = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the users service."""

    db = database or Database(resolve_database_path(os.getenv("DATABASE_URL")))
    _initialise_database(db)

    event_bus = bus or EventBus()

    app = FastAPI(
        title="Users GraphQL API",
        version="0.1.0",
        description="GraphQL access to users with real-time creation events.",
    )

    app.state.database = db
    app.state.bus = event_bus
    app.state.rates = dict(rates or {})

    app.include_router(build_graphql_router(db, event_bus), prefix=GRAPHQL_PATH)
    logger.info("GraphQL endpoint mounted at %s (store: %s)", GRAPHQL_PATH, db.path)

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["GRAPHQL_PATH", "build_graphql_router", "create_app"]
