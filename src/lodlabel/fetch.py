"""
HTTP fetching with manual redirect handling and content-type checks.

Redirects are not left to the transport: each hop is followed explicitly so
that protocol switches (http -> https) work and the chain length is bounded.
"""
from __future__ import annotations

import logging
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from ._version import __version__
from .errors import FetchError, TooManyRedirects, UnexpectedContentType
from .urls import normalize_for_request

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_CONNECT_TIMEOUT = 15.0
MAX_REDIRECTS = 10
DEFAULT_USER_AGENT = f"lodlabel/{__version__}"


def _is_redirect(status_code: int) -> bool:
    return 299 < status_code < 400


def redirect_target(url: str, location: str) -> str:
    """Work out where a ``Location`` header points to.

    Absolute locations are used as they are. Anything else is taken as a path
    on the host of the request that was redirected.
    """
    parts = urlsplit(location)
    if parts.scheme and parts.netloc:
        return location
    origin = urlsplit(url)
    if not location.startswith("/"):
        location = "/" + location
    return f"{origin.scheme}://{origin.netloc}{location}"


def check_content_type(url: str, accept: str | None, content_type: str | None) -> None:
    """Raise if the response is not in the representation that was asked for.

    The requested type must be a prefix of the declared ``Content-Type``,
    compared trimmed and case-insensitively. A missing value on either side
    skips the check.

    Raises:
        UnexpectedContentType: On mismatch.
    """
    if not accept or not content_type:
        return
    accept = accept.strip().lower()
    content_type = content_type.strip().lower()
    if not content_type.startswith(accept):
        raise UnexpectedContentType(url, accept, content_type)


class Fetcher:
    """Fetch documents over HTTP(S) without transport-level redirects."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
        user_agent: str | None = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ):
        """Initialize the fetcher.

        Args:
            timeout: Read timeout in seconds.
            connect_timeout: Connect timeout in seconds.
            max_redirects: Number of redirect hops followed before giving up.
            user_agent: User-Agent header sent unless the caller sets one.
            session: Optional requests session to send requests through.
        """
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.session = session

    def _get(self, url: str, headers: CaseInsensitiveDict) -> requests.Response:
        getter = self.session.get if self.session is not None else requests.get
        try:
            return getter(
                url,
                headers=headers,
                allow_redirects=False,
                timeout=(self.connect_timeout, self.timeout),
            )
        except requests.Timeout as e:
            raise FetchError(url, f"Timed out fetching {url}: {e}") from e
        except requests.RequestException as e:
            raise FetchError(url, f"Failed to fetch {url}: {e}") from e

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        """Fetch a URL and return the response body.

        Args:
            url: URL to fetch. It is normalized before every request.
            headers: Request headers. An ``accept`` entry (any case) is also
                used to check the response ``Content-Type``.

        Returns:
            The response body.

        Raises:
            InvalidUrl: If the URL (or a redirect target) cannot be encoded.
            FetchError: On transport failures and HTTP error statuses.
            UnexpectedContentType: If the server answers in another format.
            TooManyRedirects: If more than ``max_redirects`` hops are needed.
        """
        request_headers = CaseInsensitiveDict(headers or {})
        if self.user_agent and "user-agent" not in request_headers:
            request_headers["User-Agent"] = self.user_agent
        accept = request_headers.get("accept")

        current = normalize_for_request(url)
        for hop in range(self.max_redirects + 1):
            response = self._get(current, request_headers)
            try:
                if _is_redirect(response.status_code):
                    location = response.headers.get("Location")
                    if not location:
                        raise FetchError(
                            current,
                            f"Redirect {response.status_code} without Location from {current}",
                        )
                    target = normalize_for_request(redirect_target(current, location))
                    logger.debug(
                        "Redirect %d (hop %d): %s -> %s",
                        response.status_code, hop + 1, current, target,
                    )
                    current = target
                    continue

                check_content_type(current, accept, response.headers.get("Content-Type"))
                try:
                    response.raise_for_status()
                except requests.HTTPError as e:
                    raise FetchError(current, f"HTTP {response.status_code} from {current}") from e
                return response.content
            finally:
                response.close()

        raise TooManyRedirects(url, self.max_redirects)


_default_fetcher: Fetcher | None = None


def get_fetcher(**kwargs) -> Fetcher:
    """Get or create the default fetcher."""
    global _default_fetcher
    if _default_fetcher is None or kwargs:
        _default_fetcher = Fetcher(**kwargs)
    return _default_fetcher


def fetch(url: str, headers: dict[str, str] | None = None) -> bytes:
    """Fetch a URL using the default fetcher."""
    return get_fetcher().fetch(url, headers)
