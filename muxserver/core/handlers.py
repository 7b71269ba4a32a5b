"""Handler factories for fixed content.

Every factory returns a plain ASGI application, so the result can be
registered on a :class:`~muxserver.core.router.Router` like any other handler.
"""

import os
import mimetypes
from typing import Callable, Optional
from starlette.requests import Request
from starlette.responses import FileResponse, PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Scope, Receive, Send

HTML = "text/html"
JS = "text/javascript"
CSS = "text/css"
SVG = "image/svg+xml"
WOFF = "font/woff"


def guess_media_type(url: str) -> Optional[str]:
    media_type, _ = mimetypes.guess_type(url)
    return media_type


def bytes_handler(content: bytes, media_type: Optional[str]) -> ASGIApp:
    async def handler(scope: Scope, receive: Receive, send: Send) -> None:
        await Response(content=content, media_type=media_type)(scope, receive, send)

    return handler


def file_handler(file_path: str) -> ASGIApp:
    async def handler(scope: Scope, receive: Receive, send: Send) -> None:
        if not os.path.isfile(file_path):
            await PlainTextResponse("404 page not found", status_code=404)(scope, receive, send)
            return
        await FileResponse(file_path)(scope, receive, send)

    return handler


def html_default(app: ASGIApp) -> ASGIApp:
    """Give responses from ``app`` a ``text/html`` content type unless it set one."""

    async def handler(scope: Scope, receive: Receive, send: Send) -> None:
        async def send_with_content_type(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = message.setdefault("headers", [])
                if not any(k.lower() == b"content-type" for k, _ in headers):
                    headers.append((b"content-type", HTML.encode()))
            await send(message)

        await app(scope, receive, send_with_content_type)

    return handler


def endpoint_handler(func: Callable) -> ASGIApp:
    async def handler(scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = await func(request)
        await response(scope, receive, send)

    return handler
