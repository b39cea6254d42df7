"""Tests for the framework route table and its ApiRoute integration."""

import pytest

from smartapi import ApiController, Container, Request, Route, RouteTable, endpoint
from smartapi.core.table import FOUND


class OrdersController(ApiController):
    def __init__(self):
        self.scopes("orders:read")
        self.scopes("orders:write", except_="index|show")

    def index(self):
        return []

    def show(self, id):
        return {"id": id}

    @endpoint(limit=2, expires=1)
    def store(self):
        return {}


def make_container():
    return Container().bind("OrdersController", OrdersController)


def make_table(**kwargs):
    table = RouteTable(**kwargs)
    with table.group(prefix="api", version="v1", providers="basic", scopes="api"):
        table.get("orders", "OrdersController@index")
        table.get("orders/{id}", {"uses": "OrdersController@show", "providers": "oauth"})
        with table.group(prefix="/admin/", protected=True, scopes=["admin", "api"]):
            table.post("orders", {"uses": "OrdersController@store", "version": "v2"})
    table.get("health", lambda: "ok")
    return table


def test_routes_registration_and_groups():
    table = make_table()
    routes = table.routes()
    assert [route.uri for route in routes] == [
        "api/orders",
        "api/orders/{id}",
        "api/admin/orders",
        "health",
    ]
    show = routes[1]
    assert show.methods == ["GET", "HEAD"]
    assert show.action == {
        "version": "v1",
        "providers": ["basic", "oauth"],
        "scopes": "api",
        "uses": "OrdersController@show",
    }
    store = routes[2]
    assert store.action["protected"] is True
    assert store.action["version"] == "v2"
    assert store.action["scopes"] == ["api", "admin"]
    assert "prefix" not in store.action
    assert routes[3].action["uses"]() == "ok"


def test_match_returns_framework_route():
    table = make_table()
    route = table.match(Request("GET", "/api/orders/17?expand=lines"))
    assert isinstance(route, Route)
    assert route.uri == "api/orders/{id}"
    assert table.match(Request("HEAD", "/api/orders")).uri == "api/orders"


def test_match_dispatch_tuple():
    table = make_table()
    status, action, params = table.match(Request("GET", "/api/orders/17"), dispatch=True)
    assert status == FOUND
    assert action["uses"] == "OrdersController@show"
    assert params == {"id": "17"}

    dispatching = make_table(match_dispatch=True)
    assert dispatching.match(Request("GET", "/health"))[0] == FOUND


def test_match_failures_and_default():
    table = make_table()
    with pytest.raises(LookupError, match="not allowed"):
        table.match(Request("DELETE", "/api/orders"))
    with pytest.raises(LookupError, match="No route matches"):
        table.match(Request("GET", "/missing"))
    fallback = Route("GET", "fallback", lambda: None)
    assert table.match(Request("GET", "/missing"), default=fallback) is fallback
    assert make_table(match_default=fallback).match(Request("GET", "/missing")) is fallback


def test_api_route_from_framework_match():
    table = make_table()
    api = table.api_route(make_container(), Request("GET", "/api/orders/17"))
    assert api.get_versions() == ["v1"]
    assert api.get_auth_providers() == ["basic", "oauth"]
    assert api.get_scopes() == ["api", "orders:read"]
    assert api.controller_method == "show"
    assert api.describe()["source"] == "framework"


def test_api_route_from_dispatch_match():
    table = make_table()
    api = table.api_route(make_container(), Request("POST", "/api/admin/orders"), dispatch=True)
    assert api.uri == "api/admin/orders"
    assert api.methods == ["POST"]
    assert api.is_protected() is True
    assert api.get_versions() == ["v2"]
    assert api.get_scopes() == ["api", "admin", "orders:read", "orders:write"]
    assert api.get_rate_limit() == 2
    assert api.get_limit_expiration() == 1
    assert api.describe()["source"] == "dispatch"


def test_describe_every_route():
    described = make_table().describe(make_container())
    assert [item["uri"] for item in described] == [
        "api/orders",
        "api/orders/{id}",
        "api/admin/orders",
        "health",
    ]
    assert described[0]["controller"] == "OrdersController@index"
    assert described[2]["methods"] == ["POST"]
    assert described[3]["controller"] is None
    assert described[3]["scopes"] == []


def test_route_validation():
    with pytest.raises(ValueError):
        Route([], "x", "Ctrl@run")
    with pytest.raises(TypeError):
        Route("GET", "x", 42)
    assert repr(Route("post", "/x/", "Ctrl@run")) == "<Route POST 'x'>"


def test_duplicate_route_parameters_are_rejected():
    with pytest.raises(ValueError, match="Duplicate route parameter 'id'"):
        Route("GET", "a/{id}/b/{id}", "Ctrl@run")
    table = RouteTable()
    with pytest.raises(ValueError, match="'id'"):
        table.get("orders/{id}/lines/{id}", "Ctrl@run")
    assert table.routes() == []
    assert Route("GET", "a/{id}/b/{line}", "Ctrl@run").match("a/1/b/2") == {"id": "1", "line": "2"}
