"""
URL normalization for outgoing requests.

Authority identifiers arrive in all kinds of shapes: percent-encoded, raw
Unicode, with ``+`` standing in for spaces, or with internationalized host
names. ``normalize_for_request`` turns them into a strict ASCII form that can
be put on the wire; ``humanize`` goes the other way for display.

Example:
    >>> normalize_for_request("http://exämple.org/a b")
    'http://xn--exmple-cua.org/a%20b'
    >>> humanize("http://xn--exmple-cua.org/a%20b")
    'http://exämple.org/a b'
"""
from __future__ import annotations

import logging
import re
from urllib.parse import quote, unquote_plus, urlsplit, urlunsplit

from .errors import InvalidUrl

logger = logging.getLogger(__name__)

# Characters that never appear unescaped in an encoded URL
_UNENCODED_RE = re.compile(r'[ "<>{}|\\^~\[\]]')

# A percent sign that does not start an escape sequence
_LONE_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# RFC 3986 characters allowed unescaped in each component (besides unreserved)
_SUB_DELIMS = "!$&'()*+,;="
_USERINFO_SAFE = _SUB_DELIMS + ":%"
_PATH_SAFE = _SUB_DELIMS + ":@/%"
_QUERY_SAFE = _PATH_SAFE + "?"


def is_already_encoded(url: str) -> bool:
    """Check whether a URL is free of characters that must be escaped."""
    return _UNENCODED_RE.search(url) is None


def normalize_for_request(url: str) -> str:
    """Return a URL that is safe to request, encoding it only when needed.

    Literal ``+`` characters are taken to be spaces and replaced by ``%20``
    first. The result is re-encoded when it contains characters that must be
    escaped, non-ASCII characters, ends with ``:/``, or starts with an
    uppercase letter. Otherwise the URL is returned as is.

    Args:
        url: Raw URL string.

    Returns:
        URL in strict ASCII form.

    Raises:
        InvalidUrl: If the URL cannot be parsed or encoded.
    """
    if not url:
        raise InvalidUrl(url, "empty URL")

    passed_url = url.replace("+", "%20")
    if (
        not is_already_encoded(passed_url)
        or not passed_url.isascii()
        or passed_url.endswith(":/")
        or passed_url[0].isupper()
    ):
        return encode(passed_url)
    return passed_url


save_encode = normalize_for_request


def _host_to_ascii(host: str, url: str) -> str:
    if ":" in host:
        # IPv6 literal
        return f"[{host}]"
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise InvalidUrl(url, f"invalid host name {host!r}") from e


def _host_to_unicode(host: str, url: str) -> str:
    if ":" in host:
        return f"[{host}]"
    if not host.isascii():
        return host
    try:
        return host.encode("ascii").decode("idna")
    except UnicodeError as e:
        raise InvalidUrl(url, f"invalid host name {host!r}") from e


def _userinfo(netloc: str) -> str | None:
    if "@" not in netloc:
        return None
    return netloc.rpartition("@")[0]


def _quote(component: str, safe: str) -> str:
    return quote(_LONE_PERCENT_RE.sub("%25", component), safe=safe)


def _split(url: str):
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise InvalidUrl(url, str(e)) from e
    if not parts.scheme or not parts.hostname:
        raise InvalidUrl(url, "missing scheme or host")
    return parts, port


def encode(url: str) -> str:
    """Encode every component of a URL to strict ASCII.

    The host is converted to its IDNA (punycode) form; user info, path, query
    and fragment are percent-encoded as UTF-8. Existing escape sequences are
    kept.

    Raises:
        InvalidUrl: If the URL has no scheme or host, a bad port, or a host
            name that cannot be IDNA-encoded.
    """
    parts, port = _split(url)

    netloc = _host_to_ascii(parts.hostname, url)
    if port is not None:
        netloc = f"{netloc}:{port}"
    userinfo = _userinfo(parts.netloc)
    if userinfo is not None:
        netloc = f"{_quote(userinfo, _USERINFO_SAFE)}@{netloc}"

    encoded = urlunsplit((
        parts.scheme,
        netloc,
        _quote(parts.path, _PATH_SAFE),
        _quote(parts.query, _QUERY_SAFE),
        _quote(parts.fragment, _QUERY_SAFE),
    ))
    logger.debug("Encoded %s -> %s", url, encoded)
    return encoded


def humanize(url: str) -> str:
    """Return a human-readable form of an encoded URL.

    Path and query are decoded (``%XX`` escapes as UTF-8, ``+`` as space) and
    the host is converted back from punycode. Components are reassembled as
    ``scheme://userinfo@host:port/path#fragment?query``; the fragment comes
    before the query.

    Raises:
        InvalidUrl: If the URL cannot be parsed or decoded.
    """
    parts, port = _split(url)

    try:
        path = unquote_plus(parts.path, encoding="utf-8", errors="strict")
        query = unquote_plus(parts.query, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise InvalidUrl(url, "path or query is not valid UTF-8") from e

    host = _host_to_unicode(parts.hostname, url)
    userinfo = _userinfo(parts.netloc)

    result = f"{parts.scheme}://"
    if userinfo is not None:
        result += f"{userinfo}@"
    result += host
    if port is not None:
        result += f":{port}"
    result += path
    if parts.fragment:
        result += f"#{parts.fragment}"
    if query:
        result += f"?{query}"
    return result


decode = humanize
