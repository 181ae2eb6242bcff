"""
Content query adapters.

The provider only needs ``query(schema_name, channel, language)`` returning
records that expose the fixed system fields plus ``try_get_field``. Two
adapters ship with the package:

- InMemoryContentStore: items held in memory, optionally loaded from YAML
- HttpContentQueryAdapter: items fetched from a CMS delivery endpoint
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import requests
import yaml
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import ContentQueryError
from .logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class FieldRecord(Protocol):
    id: int
    guid: str
    name: str
    order: int
    tree_path: str
    url_path: str
    language_id: int
    version_status: str
    content_type_id: int
    is_secured: bool

    def try_get_field(self, name: str) -> Tuple[Any, bool]:
        ...


class ContentQueryAdapter(Protocol):
    async def query(self, schema_name: str, channel: str, language: str) -> Sequence[FieldRecord]:
        ...


@dataclass
class ContentItem:
    id: int
    guid: str
    name: str
    url_path: str
    channel: str
    language: str
    content_type: str
    order: int = 0
    tree_path: str = ""
    language_id: int = 0
    version_status: str = "published"
    content_type_id: int = 0
    is_secured: bool = False
    schemas: List[str] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)

    def try_get_field(self, name: str) -> Tuple[Any, bool]:
        if name in self.fields:
            return self.fields[name], True
        return None, False


def item_from_dict(data: Dict[str, Any]) -> ContentItem:
    """Build a ContentItem from the YAML / JSON item shape."""
    try:
        return ContentItem(
            id=int(data["id"]),
            guid=str(data.get("guid") or ""),
            name=str(data["name"]),
            url_path=str(data.get("url_path") or ""),
            channel=str(data["channel"]),
            language=str(data["language"]),
            content_type=str(data.get("content_type") or ""),
            order=int(data.get("order", 0)),
            tree_path=str(data.get("tree_path") or ""),
            language_id=int(data.get("language_id", 0)),
            version_status=str(data.get("version_status") or "published"),
            content_type_id=int(data.get("content_type_id", 0)),
            is_secured=bool(data.get("secured", False)),
            schemas=[str(s) for s in (data.get("schemas") or [])],
            fields=dict(data.get("fields") or {}),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ContentQueryError(f"Malformed content item {data!r}: {e}") from e


def load_content_file(path: Path) -> List[ContentItem]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Content file root must be a mapping: {path}")
    return [item_from_dict(d) for d in data.get("items") or []]


class InMemoryContentStore:
    """Answers discovery queries from a list of items, keeping insertion order."""

    def __init__(self, items: Optional[Sequence[ContentItem]] = None) -> None:
        self.items: List[ContentItem] = list(items or [])

    @classmethod
    def from_file(cls, path: Path) -> "InMemoryContentStore":
        items = load_content_file(path)
        logger.info(f"Loaded {len(items)} content items from {path}")
        return cls(items)

    async def query(self, schema_name: str, channel: str, language: str) -> List[ContentItem]:
        return [
            item
            for item in self.items
            if schema_name in item.schemas
            and item.channel == channel
            and item.language == language
        ]


def _configure_session(session: requests.Session) -> requests.Session:
    session.headers.setdefault("User-Agent", "site-discovery/0.1.0")
    session.headers.setdefault("Accept", "application/json")

    retry_strategy = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(
        pool_connections=10,
        pool_maxsize=20,
        max_retries=retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class HttpContentQueryAdapter:
    """
    Query a CMS delivery endpoint over HTTP.

    The endpoint receives ``schema``, ``channel`` and ``language`` query
    parameters and answers with either a JSON list of items or an object with
    an ``items`` list. Retries for transient statuses happen inside the
    session; anything left over is raised as ContentQueryError.
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: int = 15,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = _configure_session(session or requests.Session())

    def _fetch(self, schema_name: str, channel: str, language: str) -> List[ContentItem]:
        params = {"schema": schema_name, "channel": channel, "language": language}
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.warning(f"Content query to {self.url} failed: {e}")
            raise ContentQueryError(f"Content query to {self.url} failed: {e}") from e
        except ValueError as e:
            logger.warning(f"Content query to {self.url} returned invalid JSON: {e}")
            raise ContentQueryError(f"Invalid JSON from {self.url}: {e}") from e

        raw_items = payload.get("items") if isinstance(payload, dict) else payload
        if not isinstance(raw_items, list):
            raise ContentQueryError(f"Unexpected payload from {self.url}: no item list")
        return [item_from_dict(d) for d in raw_items]

    async def query(self, schema_name: str, channel: str, language: str) -> List[ContentItem]:
        return await asyncio.to_thread(self._fetch, schema_name, channel, language)
