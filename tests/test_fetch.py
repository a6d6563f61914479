"""Tests for the HTTP fetcher."""
import pytest
import requests

responses = pytest.importorskip("responses")

from lodlabel import fetch
from lodlabel.errors import FetchError, InvalidUrl, TooManyRedirects, UnexpectedContentType


class TestRedirectTarget:
    """Tests for redirect_target."""

    def test_absolute_location(self):
        assert fetch.redirect_target("http://a.org/x", "https://b.org/y") == "https://b.org/y"

    def test_path_location(self):
        assert fetch.redirect_target("https://a.org/x/y", "/other") == "https://a.org/other"

    def test_path_location_keeps_port(self):
        assert fetch.redirect_target("http://a.org:8080/x", "/other") == "http://a.org:8080/other"

    def test_path_without_leading_slash(self):
        assert fetch.redirect_target("http://a.org/x", "other") == "http://a.org/other"


class TestCheckContentType:
    """Tests for check_content_type."""

    def test_prefix_match(self):
        fetch.check_content_type("u", "application/json", "application/json; charset=utf-8")

    def test_case_and_whitespace_ignored(self):
        fetch.check_content_type("u", " Application/RDF+XML ", "application/rdf+xml;charset=UTF-8")

    def test_missing_values_skip_check(self):
        fetch.check_content_type("u", None, "text/html")
        fetch.check_content_type("u", "application/json", None)
        fetch.check_content_type("u", "", "text/html")

    def test_mismatch(self):
        with pytest.raises(UnexpectedContentType) as exc_info:
            fetch.check_content_type("http://x.org", "application/json", "text/html")
        assert exc_info.value.requested == "application/json"
        assert exc_info.value.received == "text/html"
        assert "application/json" in str(exc_info.value)
        assert "text/html" in str(exc_info.value)


class TestFetcher:
    """Tests for Fetcher.fetch."""

    def test_defaults(self):
        fetcher = fetch.Fetcher()
        assert fetcher.timeout == 15.0
        assert fetcher.connect_timeout == 15.0
        assert fetcher.max_redirects == 10

    @responses.activate
    def test_fetch_body(self):
        responses.add(responses.GET, "http://x.org/doc", body=b"hello", status=200,
                      content_type="application/json")

        body = fetch.Fetcher().fetch("http://x.org/doc", {"accept": "application/json"})

        assert body == b"hello"
        request = responses.calls[0].request
        assert request.headers["accept"] == "application/json"
        assert request.headers["User-Agent"].startswith("lodlabel/")

    @responses.activate
    def test_fetch_normalizes_url(self):
        responses.add(responses.GET, "http://x.org/a%20b", body=b"ok", status=200)

        assert fetch.Fetcher().fetch("http://x.org/a+b") == b"ok"
        assert responses.calls[0].request.url == "http://x.org/a%20b"

    @responses.activate
    def test_relative_redirect(self):
        """Test that a Location path is resolved against the original host."""
        responses.add(responses.GET, "http://x.org/start", status=302,
                      headers={"Location": "/other"})
        responses.add(responses.GET, "http://x.org/other", body=b"moved", status=200)

        assert fetch.Fetcher().fetch("http://x.org/start") == b"moved"
        assert [c.request.url for c in responses.calls] == [
            "http://x.org/start",
            "http://x.org/other",
        ]

    @responses.activate
    def test_absolute_redirect_switches_protocol(self):
        responses.add(responses.GET, "http://x.org/start", status=301,
                      headers={"Location": "https://x.org/start"})
        responses.add(responses.GET, "https://x.org/start", body=b"secure", status=200,
                      content_type="application/rdf+xml")

        body = fetch.Fetcher().fetch("http://x.org/start", {"Accept": "application/rdf+xml"})
        assert body == b"secure"

    @responses.activate
    def test_content_type_not_checked_on_redirect(self):
        responses.add(responses.GET, "http://x.org/start", status=303,
                      headers={"Location": "/data"}, content_type="text/html")
        responses.add(responses.GET, "http://x.org/data", body=b"{}", status=200,
                      content_type="application/json")

        assert fetch.Fetcher().fetch("http://x.org/start", {"accept": "application/json"}) == b"{}"

    @responses.activate
    def test_too_many_redirects(self):
        responses.add(responses.GET, "http://x.org/loop", status=302,
                      headers={"Location": "http://x.org/loop"})

        with pytest.raises(TooManyRedirects) as exc_info:
            fetch.Fetcher(max_redirects=2).fetch("http://x.org/loop")

        assert exc_info.value.hops == 2
        assert len(responses.calls) == 3

    @responses.activate
    def test_redirect_without_location(self):
        responses.add(responses.GET, "http://x.org/start", status=302)

        with pytest.raises(FetchError):
            fetch.Fetcher().fetch("http://x.org/start")

    @responses.activate
    def test_unexpected_content_type(self):
        responses.add(responses.GET, "http://x.org/doc", body=b"<html></html>", status=200,
                      content_type="text/html")

        with pytest.raises(UnexpectedContentType) as exc_info:
            fetch.Fetcher().fetch("http://x.org/doc", {"accept": "application/json"})
        assert exc_info.value.received == "text/html"

    @responses.activate
    def test_no_accept_skips_check(self):
        responses.add(responses.GET, "http://x.org/doc", body=b"<html></html>", status=200,
                      content_type="text/html")

        assert fetch.Fetcher().fetch("http://x.org/doc") == b"<html></html>"

    @responses.activate
    def test_http_error_status(self):
        responses.add(responses.GET, "http://x.org/missing", status=404,
                      content_type="application/json")

        with pytest.raises(FetchError) as exc_info:
            fetch.Fetcher().fetch("http://x.org/missing", {"accept": "application/json"})
        assert not isinstance(exc_info.value, UnexpectedContentType)
        assert "404" in str(exc_info.value)

    @responses.activate
    def test_timeout(self):
        responses.add(responses.GET, "http://x.org/slow",
                      body=requests.exceptions.ConnectTimeout("timed out"))

        with pytest.raises(FetchError) as exc_info:
            fetch.Fetcher().fetch("http://x.org/slow")
        assert isinstance(exc_info.value.__cause__, requests.Timeout)

    @responses.activate
    def test_connection_error(self):
        responses.add(responses.GET, "http://x.org/down",
                      body=requests.exceptions.ConnectionError("refused"))

        with pytest.raises(FetchError):
            fetch.Fetcher().fetch("http://x.org/down")

    def test_invalid_url(self):
        with pytest.raises(InvalidUrl):
            fetch.Fetcher().fetch("no host here")

    @responses.activate
    def test_uses_session(self):
        responses.add(responses.GET, "http://x.org/doc", body=b"ok", status=200)
        session = requests.Session()
        session.headers["X-Test"] = "1"

        assert fetch.Fetcher(session=session).fetch("http://x.org/doc") == b"ok"
        assert responses.calls[0].request.headers["X-Test"] == "1"


class TestDefaultFetcher:
    """Tests for module-level helpers."""

    def test_get_fetcher_reconfigures(self):
        fetcher = fetch.get_fetcher(timeout=3.0)
        try:
            assert fetcher.timeout == 3.0
            assert fetch.get_fetcher() is fetcher
        finally:
            fetch._default_fetcher = None

    @responses.activate
    def test_fetch_function(self):
        responses.add(responses.GET, "http://x.org/doc", body=b"ok", status=200)
        assert fetch.fetch("http://x.org/doc") == b"ok"
