"""ASGI adapter that runs the request logger around Starlette/FastAPI apps."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping

from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from reqlog.core.context import Middleware, RequestContext, ResponseState
from reqlog.core.exceptions import HTTPError
from reqlog.core.formatting import status_text

ErrorHandler = Callable[[Exception, "ASGIRequestContext"], Awaitable[None]]


class ASGIRequestContext(RequestContext):
    """Request context over a single HTTP scope.

    ``receive`` and ``send`` are wrapped so the request body is recorded while
    the application consumes it (only when ``capture_body`` is set), and the
    response status is captured when the application starts its response.
    """

    def __init__(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        error_handler: ErrorHandler | None = None,
        capture_body: bool = True,
    ) -> None:
        self.scope = scope
        self.capture_body = capture_body
        self.response = ResponseState()
        self._receive = receive
        self._send = send
        self._error_handler = error_handler or default_error_handler
        self._headers = Headers(scope=scope)
        self._chunks: list[bytes] = []
        self._body_complete = False
        self._disconnected = False

    @property
    def method(self) -> str:
        return self.scope["method"]

    @property
    def uri(self) -> str:
        raw_path = self.scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else self.scope.get("path", "")
        query = self.scope.get("query_string", b"")
        return f"{path}?{query.decode('latin-1')}" if query else path

    @property
    def remote_addr(self) -> str:
        client = self.scope.get("client")
        if not client:
            return ""
        host, port = client
        return f"{host}:{port}"

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    async def receive(self) -> Message:
        """Receive from the server, keeping a copy of body chunks if capturing."""
        message = await self._receive()
        if message["type"] == "http.request":
            if self.capture_body:
                self._chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                self._body_complete = True
        elif message["type"] == "http.disconnect":
            self._disconnected = True
        return message

    async def send(self, message: Message) -> None:
        """Send to the server, tracking the response status."""
        if message["type"] == "http.response.start":
            self.response.status = message["status"]
            self.response.committed = True
        await self._send(message)

    async def read_body(self) -> bytes:
        """Return the full body, draining whatever the application left unread."""
        while not self._body_complete and not self._disconnected:
            await self.receive()
        return b"".join(self._chunks)

    async def write_response(self, response: Response) -> None:
        """Send a complete response through the tracked channel."""
        await response(self.scope, self.receive, self.send)

    async def error(self, exc: Exception) -> None:
        await self._error_handler(exc, self)


async def default_error_handler(exc: Exception, ctx: ASGIRequestContext) -> None:
    """Write a JSON error response unless the response has already started."""
    if ctx.response.committed:
        return

    headers: Mapping[str, str] | None = None
    if isinstance(exc, HTTPError):
        status_code, message = exc.status_code, exc.message
    elif isinstance(exc, HTTPException):
        status_code, message, headers = exc.status_code, exc.detail, exc.headers
    else:
        status_code, message = 500, status_text(500)

    await ctx.write_response(
        JSONResponse({"message": message}, status_code=status_code, headers=headers)
    )


async def _raise_to_request_logger(request: Request, exc: Exception) -> Response:
    raise exc


def forward_http_exceptions(app: Starlette) -> None:
    """Let ``HTTPException`` reach the request logger as a handler failure.

    Starlette normally turns ``HTTPException`` into a response inside the
    application, so the wrapping middleware would only see a successful call.
    Re-raising sends it through ``ctx.error`` instead, which writes the same
    ``{"message": ...}`` body as every other failure.
    """
    app.add_exception_handler(HTTPException, _raise_to_request_logger)


class RequestLoggerMiddleware:
    """Pure ASGI middleware applying a request logger to HTTP requests."""

    def __init__(
        self,
        app: ASGIApp,
        request_logger: Middleware,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self.app = app
        self._error_handler = error_handler
        self._capture_body = getattr(request_logger, "reads_body", True)
        self._handler = request_logger(self._call_app)  # type: ignore[arg-type]

    async def _call_app(self, ctx: ASGIRequestContext) -> None:
        await self.app(ctx.scope, ctx.receive, ctx.send)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ctx = ASGIRequestContext(
            scope, receive, send, self._error_handler, capture_body=self._capture_body
        )
        await self._handler(ctx)
