"""Health check endpoints."""

import logging

import falcon.asgi
import psycopg

from permengine.infrastructure.persistence.postgres.connection import ping

logger = logging.getLogger(__name__)


class HealthResource:
    """Health and readiness endpoints."""

    def __init__(self, pool=None) -> None:
        self._pool = pool

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health - liveness."""
        resp.media = {"status": "ok"}
        resp.status = falcon.HTTP_200

    async def on_get_ready(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health/ready - readiness, pings the database."""
        if self._pool is not None:
            try:
                await ping(self._pool)
            except (psycopg.Error, OSError) as e:
                logger.warning("Readiness check failed: %s", e)
                resp.media = {"status": "unavailable", "database": "down"}
                resp.status = falcon.HTTP_503
                return
        resp.media = {"status": "ready", "database": "up"}
        resp.status = falcon.HTTP_200
