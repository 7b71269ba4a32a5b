import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union
from starlette.types import ASGIApp, Scope, Receive, Send
from starlette.responses import HTMLResponse
from .prefix_table import find_prefix, request_key, request_target
from .handlers import (
    bytes_handler,
    endpoint_handler,
    file_handler,
    guess_media_type,
    html_default,
    HTML, JS, CSS, SVG, WOFF,
)


logger = logging.getLogger(__name__)

NOT_FOUND_PAGE = (
    '<!DOCTYPE html><html><head><title>404</title><meta charset="utf-8">'
    '<meta name="viewpos" content="width=device-width"></head>'
    '<body>404 not found</body></html>'
)

METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")

Prehandler = Callable[[Scope, Receive, Send], Union[bool, Awaitable[bool]]]


class Router:
    """ASGI request router.

    Requests are matched in a fixed order: prehandlers, the table for the
    request method, the method-agnostic table, the prefix table, and finally
    the 404 page. All registration has to happen before the router starts
    serving; the tables are plain dicts without any locking.
    """

    def __init__(self) -> None:
        self.prehandlers: list[Prehandler] = []
        self.method_routes: dict[str, dict[str, ASGIApp]] = {m: {} for m in METHODS}
        self.any_routes: dict[str, ASGIApp] = {}
        self.prefix_routes: dict[str, ASGIApp] = {}
        self.cleanup_callbacks: list[Callable] = []

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] == "websocket":
            await send({"type": "websocket.close"})
            return

        if scope["type"] != "http":
            return

        await self.dispatch(scope, receive, send)

    async def dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        for prehandler in self.prehandlers:
            interrupt = prehandler(scope, receive, send)
            if inspect.isawaitable(interrupt):
                interrupt = await interrupt
            if interrupt:
                return

        _, handler = self.resolve(scope)
        if handler is None:
            await HTMLResponse(NOT_FOUND_PAGE)(scope, receive, send)
            return
        await handler(scope, receive, send)

    def resolve(self, scope: Scope) -> tuple[Optional[str], Optional[ASGIApp]]:
        """Return the registered key and handler that would serve ``scope``.

        Exact tables are keyed on the undecoded path without the query
        string; prefixes are matched against the full target. ``(None, None)``
        means the 404 page.
        """
        key = request_key(scope)
        table = self.method_routes.get(scope["method"])
        if table is not None and key in table:
            return key, table[key]

        if key in self.any_routes:
            return key, self.any_routes[key]

        prefix = find_prefix(self.prefix_routes, request_target(scope))
        if prefix is not None:
            return prefix, self.prefix_routes[prefix]

        return None, None

    def register_method(self, method: str, path: str, handler: ASGIApp) -> None:
        table = self.method_routes.get(method.upper())
        if table is None:
            raise ValueError(f"unsupported method: {method}")
        table[path] = handler

    def get(self, path: str, handler: ASGIApp) -> None:
        self.register_method("GET", path, handler)

    def post(self, path: str, handler: ASGIApp) -> None:
        self.register_method("POST", path, handler)

    def put(self, path: str, handler: ASGIApp) -> None:
        self.register_method("PUT", path, handler)

    def delete(self, path: str, handler: ASGIApp) -> None:
        self.register_method("DELETE", path, handler)

    def patch(self, path: str, handler: ASGIApp) -> None:
        self.register_method("PATCH", path, handler)

    def handle_func(self, path: str, handler: ASGIApp) -> None:
        self.any_routes[path] = handler

    def handle(self, path: str, endpoint: Callable) -> None:
        """Register a Starlette-style ``async (Request) -> Response`` endpoint."""
        self.any_routes[path] = endpoint_handler(endpoint)

    def handle_prefix(self, prefix: str, handler: ASGIApp) -> None:
        self.prefix_routes[prefix] = handler

    def add_prehandler(self, prehandler: Prehandler) -> None:
        """Append a prehandler. Returning true from it ends the request."""
        self.prehandlers.append(prehandler)

    def add_routes(self, other: "Router") -> None:
        """Copy ``other``'s method-agnostic and prefix routes into this router.

        Paths already registered here keep their handler. Per-method routes
        and prehandlers of ``other`` are not copied.
        """
        for path, handler in other.any_routes.items():
            self.any_routes.setdefault(path, handler)
        for prefix, handler in other.prefix_routes.items():
            self.prefix_routes.setdefault(prefix, handler)

    def routes(self) -> dict[str, list[str]]:
        snapshot: dict[str, list[str]] = {m: list(t) for m, t in self.method_routes.items()}
        snapshot["ANY"] = list(self.any_routes)
        snapshot["PREFIX"] = list(self.prefix_routes)
        return snapshot

    # static content

    def serve_bytes(self, path: str, content: bytes) -> None:
        self.any_routes[path] = bytes_handler(content, guess_media_type(path))

    def serve_file(self, path: str, file_path: str) -> None:
        self.any_routes[path] = file_handler(file_path)

    def handle_woff(self, path: str, content: bytes) -> None:
        self.any_routes[path] = bytes_handler(content, WOFF)

    def handle_html(self, path: str, content: bytes) -> None:
        self.any_routes[path] = bytes_handler(content, HTML)

    def handle_html_func(self, path: str, handler: ASGIApp) -> None:
        self.any_routes[path] = html_default(handler)

    def handle_js(self, path: str, content: bytes) -> None:
        self.any_routes[path] = bytes_handler(content, JS)

    def handle_css(self, path: str, content: bytes) -> None:
        self.any_routes[path] = bytes_handler(content, CSS)

    def handle_svg(self, path: str, content: bytes) -> None:
        self.any_routes[path] = bytes_handler(content, SVG)

    # lifespan

    def add_cleanup_callback(self, cb: Callable[[], Any]) -> None:
        self.cleanup_callbacks.append(cb)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                for cb in self.cleanup_callbacks:
                    result = cb()
                    if asyncio.iscoroutine(result):
                        await result
                logger.info("[mux] Shutdown complete. All resources closed.")
                await send({"type": "lifespan.shutdown.complete"})
                return
