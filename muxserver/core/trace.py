import uuid
import contextvars
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Scope, Receive, Send

trace_id_var = contextvars.ContextVar("trace_id", default=None)

TRACE_HEADER = "X-Trace-ID"


class TraceMiddleware:
    """Tag each request with a trace id.

    The id comes from the ``X-Trace-ID`` request header or a fresh uuid4. It
    is visible through ``trace_id_var`` to prehandlers, handlers and log
    records for the duration of the request, and echoed on the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        trace_id = Headers(scope=scope).get(TRACE_HEADER) or str(uuid.uuid4())
        token = trace_id_var.set(trace_id)

        async def send_with_trace_id(message: Message):
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[TRACE_HEADER] = trace_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace_id)
        finally:
            trace_id_var.reset(token)
