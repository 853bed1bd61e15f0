"""Pure ASGI CORS middleware for the browser-facing API.

- Browser wizards call the gateway cross-origin, so every path is covered.
- Allowed origins come from CORS_ALLOWED_ORIGINS; "*" allows any origin.
- Every OPTIONS request is answered 200 "ok" here, before routing.
- Disallowed origins are not rejected; their responses simply carry no
  CORS headers and the browser blocks them.
"""

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type, x-request-id"
ALLOW_METHODS = "GET, POST, OPTIONS"
EXPOSE_HEADERS = "X-Request-ID"
MAX_AGE_S = "600"


class CORSMiddleware:
    """Inject CORS headers without buffering the response body."""

    def __init__(self, app: ASGIApp, allowed_origins: list[str]):
        self.app = app
        self.allow_all = "*" in allowed_origins
        self.allowed_origins = set(allowed_origins)

    def _allow_origin(self, origin: str | None) -> str | None:
        if self.allow_all:
            return "*"
        if origin is not None and origin in self.allowed_origins:
            return origin
        return None

    def _cors_headers(self, allow_origin: str) -> dict[str, str]:
        headers = {
            "access-control-allow-origin": allow_origin,
            "access-control-allow-headers": ALLOW_HEADERS,
            "access-control-allow-methods": ALLOW_METHODS,
            "access-control-expose-headers": EXPOSE_HEADERS,
        }
        if allow_origin != "*":
            headers["vary"] = "Origin"
        return headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        allow_origin = self._allow_origin(origin)

        if scope["method"] == "OPTIONS":
            headers = {"access-control-max-age": MAX_AGE_S}
            if allow_origin is not None:
                headers.update(self._cors_headers(allow_origin))
            response = PlainTextResponse("ok", status_code=200, headers=headers)
            await response(scope, receive, send)
            return

        if allow_origin is None:
            await self.app(scope, receive, send)
            return

        cors_headers = self._cors_headers(allow_origin)

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                for name, value in cors_headers.items():
                    response_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
