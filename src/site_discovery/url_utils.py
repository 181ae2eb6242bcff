from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class RequestContext:
    """The parts of the current request needed to build absolute URLs."""

    scheme: str
    host: str
    path_base: str = ""

    @classmethod
    def from_base_url(cls, base_url: str) -> "RequestContext":
        """
        Build a context from a configured site URL, e.g. for offline generation:
        "https://example.com/site/" -> scheme=https, host=example.com, path_base=/site
        """
        parsed = urlparse(base_url.strip())
        return cls(
            scheme=parsed.scheme or "https",
            host=parsed.netloc.lower(),
            path_base=(parsed.path or "").rstrip("/"),
        )

    @property
    def root(self) -> str:
        return f"{self.scheme}://{self.host}{self.path_base}"


def normalize_url_path(url_path: str) -> str:
    """
    Canonical page path used everywhere after projection:
    - drop the "~" app-relative prefix
    - ensure a single leading "/"
    - lower-case
    """
    path = (url_path or "").strip().lstrip("~")
    if not path.startswith("/"):
        path = "/" + path
    return path.lower()


def absolute_url(url_path: str, request: RequestContext) -> str:
    path = (url_path or "").strip().lstrip("~")
    if not path.startswith("/"):
        path = "/" + path
    return f"{request.root}{path}"
