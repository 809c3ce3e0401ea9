"""Allow-list check for upstream hostnames."""

from typing import Iterable, Tuple


class DomainValidator:
    """
    Exact, case-sensitive hostname match against a fixed allow-list.

    No subdomain wildcarding and no normalization: `CDN.jsdelivr.net` and
    `sub.cdn.jsdelivr.net` are both rejected when only `cdn.jsdelivr.net`
    is configured.
    """

    def __init__(self, allowed_domains: Iterable[str]):
        self._allowed: Tuple[str, ...] = tuple(allowed_domains)

    @property
    def allowed_domains(self) -> Tuple[str, ...]:
        return self._allowed

    def is_allowed(self, hostname: str) -> bool:
        return hostname in self._allowed
