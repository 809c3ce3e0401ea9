"""
CDN Proxy Exceptions

Every error is terminal for the current request and maps to one HTTP status
with a plain-text body.
"""

from typing import Iterable


class ProxyError(Exception):
    """Base class for errors answered directly by the proxy."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingParameterError(ProxyError):
    """No `url` query value was supplied."""
    status_code = 400

    def __init__(self):
        super().__init__('Bad Request: Missing "url" parameter\nUsage: /?url=CDN_URL')


class MalformedURLError(ProxyError):
    """The `url` value has no extractable hostname."""
    status_code = 400

    def __init__(self):
        super().__init__("Bad Request: Invalid URL format")


class DomainNotAllowedError(ProxyError):
    """The target hostname is not on the allow-list."""
    status_code = 403

    def __init__(self, hostname: str, allowed_domains: Iterable[str]):
        self.hostname = hostname
        super().__init__(
            "Forbidden: Domain not allowed\n"
            f"Allowed domains: {', '.join(allowed_domains)}"
        )


class UpstreamTransportError(ProxyError):
    """The upstream host could not be reached or the exchange failed midway."""
    status_code = 502

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Bad Gateway: Unable to fetch resource from CDN\n{detail}")
