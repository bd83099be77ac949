from __future__ import annotations


class SecRequestError(RuntimeError):
    """An outbound SEC request did not produce a usable response."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class SecHttpError(SecRequestError):
    """SEC answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str, body: str = ""):
        super().__init__(f"SEC request failed {status_code}: {url} {body[:200]}".rstrip(), url=url)
        self.status_code = status_code


class SecNetworkError(SecRequestError):
    """Connection failure or timeout before any HTTP status was received."""
