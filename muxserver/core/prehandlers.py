"""Ready-made prehandlers for :meth:`Router.add_prehandler`.

A prehandler returns ``True`` once it has answered the request itself, which
stops the router from dispatching any further.
"""

import hmac
import logging
from typing import Iterable, Optional
from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import Scope, Receive, Send
from .metrics import RATE_LIMITED
from .prefix_table import request_target
from .rate_limit import InMemoryRateLimiter
from .redis_rate_limiter import RedisRateLimiter
from .router import Router


def access_log(logger: Optional[logging.Logger] = None):
    log = logger or logging.getLogger("mux.access")

    def prehandler(scope: Scope, receive: Receive, send: Send) -> bool:
        log.info(f"{scope['method']} {request_target(scope)}")
        return False

    return prehandler


def bearer_auth(token: str, exempt: Iterable[str] = ()):
    expected = f"Bearer {token}"
    exempt_paths = frozenset(exempt)

    async def prehandler(scope: Scope, receive: Receive, send: Send) -> bool:
        if scope["path"] in exempt_paths:
            return False
        given = Headers(scope=scope).get("authorization", "")
        if hmac.compare_digest(given.encode(), expected.encode()):
            return False
        await PlainTextResponse(
            "Unauthorized",
            status_code=401,
            headers={"WWW-Authenticate": "Bearer"},
        )(scope, receive, send)
        return True

    return prehandler


UNMATCHED_ROUTE = "unmatched"


def rate_limit(limiter: RedisRateLimiter | InMemoryRateLimiter, router: Router):
    """Limit each client per registered route.

    Requests are grouped by the route key ``router`` would dispatch to, so
    arbitrary paths under one prefix or the 404 page share a single bucket.
    """

    async def prehandler(scope: Scope, receive: Receive, send: Send) -> bool:
        route, _ = router.resolve(scope)
        route = route or UNMATCHED_ROUTE
        client = scope.get("client")
        ip = client[0] if client else "unknown"
        identity = f"{ip}:{route}"

        allowed, retry_after = await limiter.allow(identity)
        if allowed:
            return False

        RATE_LIMITED.labels(route=route).inc()
        headers = {
            "RateLimit-Limit": str(limiter.limit),
            "RateLimit-Remaining": str(await limiter.remaining(identity)),
            "Retry-After": str(retry_after or 0),
        }
        await PlainTextResponse("Too Many Requests", status_code=429, headers=headers)(scope, receive, send)
        return True

    return prehandler
