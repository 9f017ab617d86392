from __future__ import annotations

from haper.urls import interpolate_url, placeholders, with_query


def test_interpolate_consumes_matching_params() -> None:
    result = interpolate_url("/user/:id", {"id": 5, "name": "x"})
    assert result.url == "/user/5"
    assert result.params == {"name": "x"}


def test_unmatched_placeholder_stays_literal() -> None:
    result = interpolate_url("/user/:id", {"name": "x"})
    assert result.url == "/user/:id"
    assert result.params == {"name": "x"}


def test_no_placeholders_returns_params_untouched() -> None:
    params = {"id": 1}
    result = interpolate_url("/users", params)
    assert result.url == "/users"
    assert result.params is params


def test_non_mapping_params_are_left_alone() -> None:
    result = interpolate_url("/users/:id", [1, 2])
    assert result.url == "/users/:id"
    assert result.params == [1, 2]

    assert interpolate_url("/users/:id", None).params is None


def test_multiple_placeholders_and_similar_names() -> None:
    result = interpolate_url(
        "/orgs/:id/members/:identifier", {"identifier": "m-1", "id": 7, "page": 2}
    )
    assert result.url == "/orgs/7/members/m-1"
    assert result.params == {"page": 2}


def test_each_key_fills_only_the_first_occurrence() -> None:
    result = interpolate_url("/a/:id/b/:id", {"id": 1})
    assert result.url == "/a/1/b/:id"


def test_values_are_stringified_without_escaping() -> None:
    result = interpolate_url("/search/:term/:flag", {"term": "a b/c", "flag": True})
    assert result.url == "/search/a b/c/True"
    assert result.params == {}


def test_placeholders_in_order() -> None:
    assert placeholders("/a/:x/:y/:x") == ["x", "y", "x"]


def test_with_query() -> None:
    assert with_query("/items", None) == "/items"
    assert with_query("/items", {}) == "/items"
    assert with_query("/items", {"name": "foo", "page": 2}) == "/items?name=foo&page=2"
    assert with_query("/items?a=1", {"b": "x y"}) == "/items?a=1&b=x+y"
