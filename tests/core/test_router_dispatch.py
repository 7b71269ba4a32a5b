import pytest
import httpx
from httpx import ASGITransport
from muxserver.core.router import Router, NOT_FOUND_PAGE
from tests.fixtures.mock_handlers import named_handler, echo_request_handler, RecordingHandler


def client_for(router):
    return httpx.AsyncClient(transport=ASGITransport(app=router), base_url="http://test")


@pytest.mark.anyio
async def test_each_method_table_dispatches_its_handler():
    router = Router()
    router.get("/item", named_handler("get"))
    router.post("/item", named_handler("post"))
    router.put("/item", named_handler("put"))
    router.delete("/item", named_handler("delete"))
    router.patch("/item", named_handler("patch"))

    async with client_for(router) as client:
        for method in ("GET", "POST", "PUT", "DELETE", "PATCH"):
            res = await client.request(method, "/item")
            assert res.status_code == 200
            assert res.text == method.lower()


@pytest.mark.anyio
async def test_method_route_is_not_reachable_with_other_methods():
    router = Router()
    router.post("/submit", named_handler("post"))

    async with client_for(router) as client:
        res = await client.get("/submit")
        assert res.text == NOT_FOUND_PAGE


@pytest.mark.anyio
async def test_any_route_answers_every_method():
    router = Router()
    router.handle_func("/any", named_handler("any"))

    async with client_for(router) as client:
        for method in ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"):
            res = await client.request(method, "/any")
            assert res.status_code == 200
            if method != "HEAD":
                assert res.text == "any"


@pytest.mark.anyio
async def test_method_route_wins_over_any_route():
    router = Router()
    router.handle_func("/thing", named_handler("any"))
    router.get("/thing", named_handler("get"))

    async with client_for(router) as client:
        assert (await client.get("/thing")).text == "get"
        assert (await client.post("/thing")).text == "any"


@pytest.mark.anyio
async def test_query_string_is_ignored_for_exact_routes():
    router = Router()
    router.get("/a/b", echo_request_handler)

    async with client_for(router) as client:
        res = await client.get("/a/b?x=1")
        assert res.status_code == 200
        assert res.json() == {"method": "GET", "path": "/a/b", "query": "x=1"}


@pytest.mark.anyio
async def test_prefix_route_used_when_no_exact_match():
    router = Router()
    router.handle_prefix("/assets/", named_handler("assets"))
    router.handle_func("/assets/exact", named_handler("exact"))

    async with client_for(router) as client:
        assert (await client.get("/assets/img/logo.png")).text == "assets"
        assert (await client.get("/assets/exact")).text == "exact"


@pytest.mark.anyio
async def test_prefix_matches_against_full_target_with_query():
    router = Router()
    router.handle_prefix("/search?q=", named_handler("search"))

    async with client_for(router) as client:
        assert (await client.get("/search?q=mux")).text == "search"
        assert (await client.get("/search")).text == NOT_FOUND_PAGE


@pytest.mark.anyio
async def test_first_registered_prefix_wins():
    router = Router()
    router.handle_prefix("/a", named_handler("short"))
    router.handle_prefix("/a/b", named_handler("long"))

    async with client_for(router) as client:
        assert (await client.get("/a/b/c")).text == "short"


@pytest.mark.anyio
async def test_unmatched_request_gets_not_found_page():
    router = Router()
    router.get("/known", named_handler("known"))

    async with client_for(router) as client:
        res = await client.get("/unknown")
        assert res.status_code == 200
        assert res.text == NOT_FOUND_PAGE
        assert res.headers["content-type"].startswith("text/html")


@pytest.mark.anyio
async def test_reregistering_path_replaces_handler():
    first = RecordingHandler("first")
    second = RecordingHandler("second")
    router = Router()
    router.get("/dup", first)
    router.get("/dup", second)
    router.handle_func("/dup-any", first)
    router.handle_func("/dup-any", second)

    async with client_for(router) as client:
        assert (await client.get("/dup")).text == "second"
        assert (await client.get("/dup-any")).text == "second"

    assert first.calls == 0
    assert second.calls == 2


def test_register_method_is_case_insensitive():
    router = Router()
    handler = named_handler("x")
    router.register_method("get", "/x", handler)
    assert router.method_routes["GET"]["/x"] is handler


def test_register_method_rejects_unknown_method():
    router = Router()
    with pytest.raises(ValueError):
        router.register_method("OPTIONS", "/x", named_handler("x"))


def test_routes_snapshot_lists_every_table():
    router = Router()
    router.get("/g", named_handler("g"))
    router.handle_func("/a", named_handler("a"))
    router.handle_prefix("/p/", named_handler("p"))

    routes = router.routes()
    assert routes["GET"] == ["/g"]
    assert routes["POST"] == []
    assert routes["ANY"] == ["/a"]
    assert routes["PREFIX"] == ["/p/"]


@pytest.mark.anyio
async def test_handler_exceptions_propagate():
    async def broken(scope, receive, send):
        raise RuntimeError("boom")

    router = Router()
    router.get("/broken", broken)

    async with client_for(router) as client:
        with pytest.raises(RuntimeError):
            await client.get("/broken")


@pytest.mark.anyio
async def test_starlette_endpoint_registration():
    from starlette.responses import JSONResponse

    async def endpoint(request):
        return JSONResponse({"path": request.url.path, "q": request.query_params.get("q")})

    router = Router()
    router.handle("/endpoint", endpoint)

    async with client_for(router) as client:
        res = await client.get("/endpoint?q=1")
        assert res.json() == {"path": "/endpoint", "q": "1"}


@pytest.mark.anyio
async def test_exact_routes_match_the_undecoded_path():
    router = Router()
    router.get("/a%20b", named_handler("encoded"))
    router.get("/x/y", named_handler("slash"))

    async with client_for(router) as client:
        assert (await client.get("/a%20b")).text == "encoded"
        assert (await client.get("/a%20b?q=1")).text == "encoded"
        assert (await client.get("/x%2Fy")).text == NOT_FOUND_PAGE
        assert (await client.get("/x/y")).text == "slash"


@pytest.mark.anyio
async def test_prefix_routes_match_the_undecoded_target():
    router = Router()
    router.handle_prefix("/files/my%20docs/", named_handler("docs"))

    async with client_for(router) as client:
        assert (await client.get("/files/my%20docs/a.txt")).text == "docs"


def test_request_key_falls_back_to_path_without_raw_path():
    from muxserver.core.prefix_table import request_key, request_target

    scope = {"type": "http", "path": "/plain", "query_string": b"a=1"}
    assert request_key(scope) == "/plain"
    assert request_target(scope) == "/plain?a=1"

    scope = {"type": "http", "path": "/a b", "raw_path": b"/a%20b?a=1", "query_string": b"a=1"}
    assert request_key(scope) == "/a%20b"
    assert request_target(scope) == "/a%20b?a=1"


def test_resolve_reports_the_matched_key():
    router = Router()
    router.get("/g", named_handler("g"))
    router.handle_prefix("/p/", named_handler("p"))

    def scope(method, path):
        return {"type": "http", "method": method, "path": path, "query_string": b""}

    assert router.resolve(scope("GET", "/g"))[0] == "/g"
    assert router.resolve(scope("GET", "/p/deep/file"))[0] == "/p/"
    assert router.resolve(scope("GET", "/missing")) == (None, None)
