"""
Address resolution and fetching for paks and their resources.

Supported address forms:
- ``"./templates/svc.yaml"`` or ``"templates/svc.yaml"`` -> relative
- ``"/abs/path/pak.yaml"`` -> local file
- ``"https://host/paks/pak.yaml"`` -> HTTP(S)
- ``"github.com/owner/repo/path/pak.yaml"`` -> raw file on the default branch
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from types import TracebackType
from urllib.parse import urlsplit, urlunsplit

import httpx

from kupak.errors import FetchError, InvalidAddressError
from kupak.logging import get_logger

logger = get_logger("source")

GITHUB_HOST = "github.com"
GITHUB_RAW_HOST = "raw.githubusercontent.com"
GITHUB_DEFAULT_BRANCH = "master"

_URL_PREFIXES = ("http://", "https://")


def is_url(address: str) -> bool:
    """Check if *address* is an HTTP(S) URL."""
    return address.lower().startswith(_URL_PREFIXES)


def is_shorthand(address: str) -> bool:
    """Check if *address* uses the ``github.com/owner/repo/...`` form."""
    return address == GITHUB_HOST or address.startswith(GITHUB_HOST + "/")


def is_relative(address: str) -> bool:
    """
    Check if *address* must be resolved against a base address.

    Empty addresses and addresses starting with ``.`` are always relative.
    Absolute local paths, URLs and shorthand addresses are not.
    """
    if not address or address.startswith("."):
        return True
    if os.path.isabs(address):
        return False
    return not (is_url(address) or is_shorthand(address))


def githubize(address: str) -> str:
    """Rewrite a shorthand address to its raw-content HTTPS URL."""
    segments = [s for s in address.split("/") if s]
    # host, owner, repo and at least one path segment
    if len(segments) < 4:
        raise InvalidAddressError(f"invalid github address: {address!r}")
    _, owner, repo, *path = segments
    return "https://" + posixpath.join(
        GITHUB_RAW_HOST, owner, repo, GITHUB_DEFAULT_BRANCH, *path
    )


def parent_address(address: str) -> str:
    """Return the directory part of *address*, keeping scheme, host and query of URLs."""
    if is_url(address):
        parts = urlsplit(address)
        return urlunsplit(parts._replace(path=posixpath.dirname(parts.path)))
    if is_shorthand(address):
        return posixpath.dirname(address)
    return os.path.dirname(address)


def join_address(base: str, address: str) -> str:
    """
    Resolve *address* against the directory of *base*.

    Non-relative addresses are returned verbatim and *base* is ignored.
    """
    if not is_relative(address):
        return address

    directory = parent_address(base)
    if is_url(directory):
        parts = urlsplit(directory)
        path = posixpath.normpath(posixpath.join(parts.path or "/", address))
        return urlunsplit(parts._replace(path=path))
    if is_shorthand(directory):
        return posixpath.normpath(posixpath.join(directory, address))
    return os.path.normpath(os.path.join(directory, address))


class Fetcher:
    """
    Fetches the raw bytes behind an address.

    Every call performs a fresh read; there is no caching and no retry.
    An ``httpx.Client`` may be injected, otherwise one is created lazily
    and closed together with the fetcher.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        return self._client

    def fetch(self, address: str) -> bytes:
        """Fetch *address* and return its full body."""
        if is_shorthand(address):
            return self.fetch(githubize(address))
        if is_url(address):
            return self._fetch_http(address)
        return self._fetch_file(address)

    def _fetch_http(self, url: str) -> bytes:
        logger.debug("GET %s", url)
        try:
            resp = self.client.get(url)
        except httpx.HTTPError as exc:
            raise FetchError(url, str(exc)) from exc
        if not resp.is_success:
            raise FetchError(url, f"HTTP {resp.status_code}")
        return resp.content

    def _fetch_file(self, path: str) -> bytes:
        logger.debug("Reading %s", path)
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise FetchError(path, exc.strerror or str(exc)) from exc

    def close(self) -> None:
        """Close the underlying HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def fetch_address(address: str, timeout: float | None = None) -> bytes:
    """Fetch a single address with a short-lived fetcher."""
    with Fetcher(timeout=timeout) as fetcher:
        return fetcher.fetch(address)
