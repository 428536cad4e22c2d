"""Service API key middleware."""
from __future__ import annotations

import secrets
from typing import Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send


class ApiKeyMiddleware:
    """Enforces a static service key via X-API-Key for /api routes."""

    def __init__(self, app: ASGIApp, api_key: Optional[str]):
        self.app = app
        self.api_key = api_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http" or not scope.get("path", "").startswith("/api"):
            await self.app(scope, receive, send)
            return

        # Allow OPTIONS requests (CORS preflight)
        if scope.get("method") == "OPTIONS":
            await self.app(scope, receive, send)
            return

        # Skip enforcement if no key configured
        if not self.api_key:
            await self.app(scope, receive, send)
            return

        # Health checks stay open for load balancers
        if scope.get("path", "").rstrip("/") == "/api/v1/health":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        provided = headers.get(b"x-api-key")

        if not provided:
            await self._reject(scope, receive, send, status_code=401, detail="Missing X-API-Key header")
            return

        if not secrets.compare_digest(provided.decode(), self.api_key):
            await self._reject(scope, receive, send, status_code=403, detail="Invalid API key")
            return

        await self.app(scope, receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, status_code: int, detail: str) -> None:
        response = JSONResponse({"detail": detail}, status_code=status_code)
        await response(scope, receive, send)
