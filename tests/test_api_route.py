"""Tests for ApiRoute attribute extraction and accessors."""

import pytest
from pydantic import ValidationError

from smartapi import ApiRoute, Container, Request, Route


def build(action, *, methods="GET", uri="users", request=None):
    route = Route(methods, uri, action)
    return ApiRoute(Container(), route, request or Request("GET", "/" + uri))


def handler():
    return "ok"


def test_defaults_when_action_has_no_api_keys():
    api = build({"uses": handler})
    assert api.get_versions() == []
    assert api.is_protected() is False
    assert api.get_scopes() == []
    assert api.get_auth_providers() == []
    assert api.get_rate_limit() == 0
    assert api.get_limit_expiration() == 0
    assert api.request_is_conditional() is True
    assert api.uses_controller() is False
    assert api.controller is None
    assert api.controller_method is None


def test_api_keys_are_pulled_out_of_the_action_bag():
    route = Route(
        "GET",
        "users",
        {
            "uses": handler,
            "middleware": ["auth"],
            "version": "v1",
            "protected": True,
            "providers": "basic|oauth",
            "limit": 10,
            "expires": 5,
            "scopes": ["read", "write"],
        },
    )
    api = ApiRoute(Container(), route, Request("GET", "/users"))

    assert api.get_versions() == ["v1"]
    assert api.is_protected() is True
    assert api.get_auth_providers() == ["basic", "oauth"]
    assert api.get_rate_limit() == 10
    assert api.get_limit_expiration() == 5
    assert api.get_scopes() == ["read", "write"]
    assert api.action == {"uses": handler, "middleware": ["auth"]}
    # upstream route keeps its own bag
    assert route.action["limit"] == 10


def test_scopes_alias_and_copies():
    api = build({"uses": handler, "scopes": "read|write"})
    assert api.scopes() == api.get_scopes() == ["read", "write"]
    api.get_scopes().append("admin")
    api.get_auth_providers().append("basic")
    assert api.get_scopes() == ["read", "write"]
    assert api.get_auth_providers() == []


def test_protected_requires_exact_true():
    assert build({"uses": handler, "protected": "yes"}).is_protected() is False
    assert build({"uses": handler, "protected": 1}).is_protected() is False
    assert build({"uses": handler, "protected": None}).is_protected() is False


def test_providers_accept_lists_and_dedupe():
    api = build({"uses": handler, "providers": ["basic", "jwt|basic", ""]})
    assert api.get_auth_providers() == ["basic", "jwt"]


def test_versions_accept_lists():
    api = build({"uses": handler, "version": ["v1", "v2"]})
    assert api.get_versions() == ["v1", "v2"]


def test_conditional_request_flag():
    assert build({"uses": handler, "conditional_request": False}).request_is_conditional() is False
    assert build({"uses": handler, "conditional_request": "no"}).request_is_conditional() is False


def test_numeric_strings_are_coerced():
    api = build({"uses": handler, "limit": "60", "expires": "1"})
    assert api.get_rate_limit() == 60
    assert api.get_limit_expiration() == 1


def test_invalid_attributes_raise_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        build({"uses": handler, "limit": -1})
    assert exc_info.value.title == "Invalid API attributes for route 'users'"

    with pytest.raises(ValidationError):
        build({"uses": handler, "expires": "soon"})

    with pytest.raises(ValidationError):
        build({"uses": handler, "scopes": 42})


def test_dispatcher_route_uses_request_for_uri_and_methods():
    action = {"uses": handler, "limit": 3}
    api = ApiRoute(Container(), (1, action, {"id": "7"}), Request("get", "/users/7?page=2"))
    assert api.uri == "users/7"
    assert api.methods == ["GET", "HEAD"]
    assert api.get_rate_limit() == 3
    assert action == {"uses": handler, "limit": 3}

    post = ApiRoute(Container(), [1, {"uses": handler}, {}], Request("POST", "/users"))
    assert post.methods == ["POST"]


def test_unsupported_route_shape():
    with pytest.raises(TypeError):
        ApiRoute(Container(), 42, Request("GET", "/"))


def test_describe_reports_extracted_metadata():
    api = build({"uses": handler, "version": "v2", "protected": True, "scopes": "read"})
    info = api.describe()
    assert info == {
        "uri": "users",
        "methods": ["GET", "HEAD"],
        "source": "framework",
        "controller": None,
        "versions": ["v2"],
        "protected": True,
        "scopes": ["read"],
        "providers": [],
        "limit": 0,
        "expires": 0,
        "conditional_request": True,
    }
    assert repr(api) == "<ApiRoute GET|HEAD 'users'>"
