"""
lodlabel - Human-readable labels for linked-data identifiers

Features:
- Fetch RDF descriptions of authority records (GND, lobid) over HTTP
- Extract a label literal in a preferred language, falling back to any language
- Normalize and validate URLs before they go on the wire
- CLI and optional HTTP API for label lookups
"""

from ._version import __version__
from .errors import (
    FetchError,
    InvalidUrl,
    LabelError,
    ParseError,
    TooManyRedirects,
    UnexpectedContentType,
)
from .resolvers import find_resolver, is_label_found, resolve_label
from .urls import humanize, normalize_for_request

__all__ = [
    "__version__",
    "resolve_label",
    "find_resolver",
    "is_label_found",
    "normalize_for_request",
    "humanize",
    "LabelError",
    "InvalidUrl",
    "FetchError",
    "UnexpectedContentType",
    "TooManyRedirects",
    "ParseError",
]
