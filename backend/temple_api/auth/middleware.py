from __future__ import annotations

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from ..config import Settings
from ..security.token_inspection import resolve_identity
from .engine import AccessRequest, AuthorizationEngine


class PermissionAuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Runs the authorization engine before any router sees the request.

    The caller's identity is taken from the bearer token and exposed to
    handlers as ``request.state.identity``; the decision is exposed as
    ``request.state.authorization``. Denials are answered here with a
    plain-text body and never reach the routers or exception handlers.
    """

    def __init__(self, app: ASGIApp, engine: AuthorizationEngine, settings: Settings):
        super().__init__(app)
        self.engine = engine
        self.settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        identity = resolve_identity(request.headers.get("authorization"), self.settings)
        request.state.identity = identity

        decision = await self.engine.authorize(
            AccessRequest(
                method=request.method,
                path=request.url.path,
                authenticated=identity.authenticated,
                claims=identity.claims,
            )
        )
        request.state.authorization = decision

        if not decision.allowed:
            return PlainTextResponse(decision.message or "", status_code=decision.status_code)

        return await call_next(request)
