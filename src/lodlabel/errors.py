"""Exceptions raised while fetching and parsing linked data.

URL normalization and HTTP fetching raise these to their callers. Label
lookups and resolvers catch them and report "no label" instead.
"""
from __future__ import annotations


class LabelError(Exception):
    """Base class for all lodlabel errors."""


class InvalidUrl(LabelError, ValueError):
    """A URL could not be parsed, encoded or decoded."""

    def __init__(self, url: str, reason: str | None = None):
        self.url = url
        self.reason = reason
        message = f"Invalid URL: {url!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class FetchError(LabelError):
    """Transport-level failure while fetching a URL."""

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        super().__init__(message or f"Failed to fetch {url}")


class UnexpectedContentType(FetchError):
    """The server answered in a representation other than the one asked for."""

    def __init__(self, url: str, requested: str, received: str):
        self.requested = requested
        self.received = received
        super().__init__(
            url,
            f"Website does not answer in correct format! Asked for accept: {requested} "
            f"but got content-type: {received} ({url})",
        )


class TooManyRedirects(FetchError):
    """The redirect chain exceeded the configured hop limit."""

    def __init__(self, url: str, hops: int):
        self.hops = hops
        super().__init__(url, f"Too many redirects ({hops}) while fetching {url}")


class ParseError(LabelError):
    """The RDF parser rejected a fetched document."""

    def __init__(self, message: str, rdf_format: str | None = None):
        self.rdf_format = rdf_format
        super().__init__(message)
