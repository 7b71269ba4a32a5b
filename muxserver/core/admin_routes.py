from starlette.types import Scope, Receive, Send
from starlette.responses import PlainTextResponse, JSONResponse, Response
from muxserver.core.metrics import render_prometheus_metrics
from muxserver.core.router import Router


def admin_router(target: Router) -> Router:
    """Build a router with operational endpoints describing ``target``.

    Attach it with ``target.add_routes(admin_router(target))``; paths the
    application registered itself take precedence.
    """
    admin = Router()

    async def health(scope: Scope, receive: Receive, send: Send) -> None:
        await PlainTextResponse("OK")(scope, receive, send)

    async def routes(scope: Scope, receive: Receive, send: Send) -> None:
        await JSONResponse(target.routes())(scope, receive, send)

    async def metrics(scope: Scope, receive: Receive, send: Send) -> None:
        data, content_type = render_prometheus_metrics()
        await Response(content=data, media_type=content_type)(scope, receive, send)

    admin.handle_func("/__health", health)
    admin.handle_func("/__routes", routes)
    admin.handle_func("/__metrics", metrics)
    return admin
