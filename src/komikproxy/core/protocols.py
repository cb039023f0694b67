"""Protocol definitions for proxy components."""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class FetchResult:
    """Upstream response container."""

    url: str
    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Decode body as UTF-8."""
        return self.body.decode("utf-8", errors="replace")


class Fetcher(Protocol):
    """Protocol for URL fetchers."""

    async def fetch(self, url: str, extra_headers: dict[str, str] | None = None) -> FetchResult:
        """Fetch a URL and return the final response."""
        ...

    async def close(self) -> None:
        ...
