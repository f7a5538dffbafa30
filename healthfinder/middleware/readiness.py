"""
HealthFinder API — Store Readiness Gate
=========================================

What:  Rejects every request with 503 while the store connection is not
       established.
How:   Consults database.store_state; when disconnected, makes one
       throttled reconnection attempt before answering 503, so the service
       recovers on its own once the store comes back.

Excluded paths: /health reports store status itself; the OpenAPI docs do
not touch the store.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from healthfinder.database import ensure_store_connected
from healthfinder.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class StoreReadinessMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        if not await ensure_store_connected():
            rid = request_id_var.get("")
            logger.warning("[%s] Rejecting %s %s: store not connected",
                           rid, request.method, request.url.path)
            return JSONResponse(
                status_code=503,
                content={
                    "error": "service_unavailable",
                    "message": "Service unavailable",
                    "request_id": rid,
                },
            )

        return await call_next(request)
