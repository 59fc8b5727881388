"""
Errors raised by the package descriptor and fetcher.

Three flat kinds, none of which derives from another. Transport faults
(DNS, refused connections, TLS, timeouts) are not part of this set: they
surface as httpx.HTTPError subclasses.
"""
import httpx


class FormatError(Exception):
    """The underline descriptor has fewer than four segments."""

    def __init__(self, raw: str, length: int):
        self.raw = raw
        self.length = length
        super().__init__(f"Underline format parse error: {raw!r} has {length} segment(s), expected at least 4")


class UrlError(Exception):
    """The base URL is not an absolute URL, or the archive path could not be joined onto it."""

    def __init__(self, base_url: str, reason: str):
        self.base_url = base_url
        self.reason = reason
        super().__init__(f"Invalid base URL {base_url!r}: {reason}")


class NetworkError(Exception):
    """The server answered with a non-2xx status. The full response is kept for inspection."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"Network request error: HTTP {response.status_code} {response.reason_phrase}")

    @property
    def status_code(self) -> int:
        return self.response.status_code


PACKAGE_ERRORS = (FormatError, UrlError, NetworkError)
