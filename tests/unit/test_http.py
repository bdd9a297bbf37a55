"""
Tests for request and response snapshots.
"""

import dataclasses

import pytest

from cachefirst.http import Request, Response, make_response, resolve_url, url_origin


class TestRequest:
    def test_for_path_resolves_against_origin(self):
        request = Request.for_path("/static/js/main.js", "https://app.example.com")

        assert request.url == "https://app.example.com/static/js/main.js"

    def test_origin_with_trailing_slash(self):
        assert resolve_url("/", "https://app.example.com/") == "https://app.example.com/"

    def test_absolute_url_kept(self):
        assert resolve_url("https://cdn.test/x.js", "https://app.test") == "https://cdn.test/x.js"

    def test_method_is_upper_cased(self):
        assert Request("https://a.test/", method="get").method == "GET"

    def test_cache_key(self):
        assert Request("https://a.test/x").cache_key == "GET https://a.test/x"

    def test_navigation(self):
        assert Request("https://a.test/", destination="document").is_navigation
        assert not Request("https://a.test/logo.png", destination="image").is_navigation

    def test_headers_do_not_affect_equality(self):
        assert Request("https://a.test/", headers={"A": "1"}) == Request("https://a.test/")


class TestResponse:
    def test_immutable(self):
        response = Response(body=b"x")

        with pytest.raises(dataclasses.FrozenInstanceError):
            response.body = b"y"

    @pytest.mark.parametrize(
        "status,type_,cacheable",
        [
            (200, "basic", True),
            (201, "basic", False),
            (304, "basic", False),
            (404, "basic", False),
            (200, "cors", False),
            (200, "opaque", False),
        ],
    )
    def test_is_cacheable(self, status, type_, cacheable):
        assert Response(status=status, type=type_).is_cacheable is cacheable

    def test_dict_round_trip_keeps_fields(self):
        response = Response(status=200, body=b"\x00\x01", headers={"A": "b"}, url="u", type="basic")

        assert Response.from_dict(response.to_dict()) == response

    def test_make_response_encodes_text(self):
        response = make_response("مرحبا", content_type="text/plain; charset=utf-8")

        assert response.text() == "مرحبا"
        assert response.headers == {"Content-Type": "text/plain; charset=utf-8"}


def test_url_origin():
    assert url_origin("https://app.example.com:8443/a/b?c=d") == "https://app.example.com:8443"
