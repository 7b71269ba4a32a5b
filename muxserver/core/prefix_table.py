
from typing import Optional
from starlette.types import ASGIApp, Scope


def request_key(scope: Scope) -> str:
    """Undecoded request path, cut at the first ``?``."""
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else scope["path"]
    return path.split("?", 1)[0]


def request_target(scope: Scope) -> str:
    path = request_key(scope)
    query = scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


def find_prefix(route_table: dict[str, ASGIApp], target: str) -> Optional[str]:
    # first registered prefix wins, not the longest one
    for route_prefix in route_table:
        if target.startswith(route_prefix):
            return route_prefix
    return None
