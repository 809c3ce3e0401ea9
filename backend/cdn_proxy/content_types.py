"""
Static extension -> MIME type table used when the upstream omits Content-Type.
"""

import posixpath
from types import MappingProxyType

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = MappingProxyType({
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".eot": "application/vnd.ms-fontobject",
})


def get_content_type(path: str) -> str:
    """Guess the MIME type of a URL path from its file extension."""
    ext = posixpath.splitext(path or "")[1].lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)
