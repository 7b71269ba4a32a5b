import os
import logging
from dotenv import load_dotenv
from redis import asyncio as redis
from muxserver.config.settings import Settings
from muxserver.core.router import Router
from muxserver.core.server import Server
from muxserver.core.admin_routes import admin_router
from muxserver.core.prehandlers import access_log, bearer_auth, rate_limit
from muxserver.core.rate_limit import InMemoryRateLimiter
from muxserver.core.redis_rate_limiter import RedisRateLimiter
from muxserver.core.metrics import MetricsMiddleware
from muxserver.core.trace import TraceMiddleware
from muxserver.core.logging_setup import configure_logging
from starlette.responses import JSONResponse

INDEX_PAGE = b"""<!DOCTYPE html><html><head><title>mux</title><meta charset="utf-8">
<link rel="stylesheet" href="/style.css"></head>
<body><h1>mux</h1><script src="/app.js"></script></body></html>"""

STYLE = b"body { font-family: sans-serif; }"
SCRIPT = b"console.log('mux');"

# Load environment variables from .env file
load_dotenv()
settings = Settings.from_env()
configure_logging(settings.log_level)

logger = logging.getLogger("mux")


async def echo(request):
    return JSONResponse({"method": request.method, "path": request.url.path})


def build_router(settings: Settings) -> Router:
    router = Router()
    router.add_prehandler(access_log())

    if settings.auth_token:
        router.add_prehandler(bearer_auth(settings.auth_token, exempt=["/__health"]))

    if settings.rate_limit > 0:
        if settings.redis_host:
            redis_client = redis.Redis(host=settings.redis_host, port=settings.redis_port,
                                       decode_responses=True)
            limiter = RedisRateLimiter(redis_client, limit=settings.rate_limit,
                                       window_ms=settings.rate_window_seconds * 1000)
            router.add_cleanup_callback(redis_client.aclose)
        else:
            limiter = InMemoryRateLimiter(settings.rate_limit, settings.rate_window_seconds)
        router.add_prehandler(rate_limit(limiter, router))

    router.handle_html("/", INDEX_PAGE)
    router.handle_css("/style.css", STYLE)
    router.handle_js("/app.js", SCRIPT)
    router.handle("/echo", echo)
    static_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")
    if os.path.isdir(static_dir):
        for name in sorted(os.listdir(static_dir)):
            router.serve_file(f"/static/{name}", os.path.join(static_dir, name))

    router.add_routes(admin_router(router))
    return router


router = build_router(settings)

# Middlewares wrap the router; prehandlers run inside it
app = MetricsMiddleware(router)
app = TraceMiddleware(app)

if __name__ == "__main__":
    Server(app, host=settings.host, port=settings.port,
           grace_period=settings.shutdown_grace_seconds,
           log_level=settings.log_level).listen_and_serve()
