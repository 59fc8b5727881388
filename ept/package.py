"""
Package descriptor: the underline format codec and download URL derivation.

    <name>_<version>_<author>_<types>[_<ignored...>]

The archive lives at ./<types>/<name>_<version>_<author>.7z relative to the
repository base URL, so `types` picks the directory and is not part of the
archive filename.
"""
from urllib.parse import urljoin, uses_relative

import httpx
from pydantic import BaseModel, ConfigDict

from ept.errors import FormatError, UrlError

DELIMITER = "_"
ARCHIVE_EXTENSION = ".7z"
MIN_SEGMENTS = 4


class Package(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    author: str
    types: str

    @classmethod
    def parse(cls, text: str) -> "Package":
        """Parse the underline format. Segments past the fourth are ignored."""
        segments = text.split(DELIMITER)
        if len(segments) < MIN_SEGMENTS:
            raise FormatError(raw=text, length=len(segments))

        return cls(
            name=segments[0],
            version=segments[1],
            author=segments[2],
            types=segments[3],
        )

    def to_underline(self) -> str:
        # Fields holding the delimiter do not survive a round trip.
        return DELIMITER.join((self.name, self.version, self.author, self.types))

    @property
    def archive_name(self) -> str:
        return f"{self.name}_{self.version}_{self.author}{ARCHIVE_EXTENSION}"

    def download_url(self, base_url: str) -> httpx.URL:
        """
        Resolve the archive path against base_url.

        Standard relative resolution applies: without a trailing slash the
        last path segment of base_url is replaced.

        Raises:
            UrlError: base_url is malformed or not absolute.
        """
        try:
            base = httpx.URL(base_url)
        except httpx.InvalidURL as e:
            raise UrlError(base_url, str(e)) from e

        if not base.scheme:
            raise UrlError(base_url, "relative URL without a base")
        if not base.host and base.scheme != "file":
            raise UrlError(base_url, "empty host")

        relative = f"./{self.types}/{self.archive_name}"
        try:
            url = httpx.URL(_join(str(base), relative))
        except (httpx.InvalidURL, ValueError) as e:
            raise UrlError(base_url, f"cannot join {relative!r}: {e}") from e

        if not url.is_absolute_url:
            raise UrlError(base_url, f"joining {relative!r} gave a relative URL")
        return url

    def __str__(self) -> str:
        return self.to_underline()


def _join(base: str, relative: str) -> str:
    """RFC 3986 resolution for any hierarchical scheme, not only the ones urljoin knows."""
    scheme, rest = base.split(":", 1)
    if scheme.lower() in uses_relative:
        return urljoin(base, relative)
    joined = urljoin("http:" + rest, relative)
    return scheme + joined[len("http"):]


def parse(text: str) -> Package:
    return Package.parse(text)


def format_package(package: Package) -> str:
    return package.to_underline()


def download_url(package: Package, base_url: str) -> httpx.URL:
    return package.download_url(base_url)
