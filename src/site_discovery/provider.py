from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, FrozenSet, List, Mapping, Optional, Sequence, Union

from .cache import (
    DETAILED_LIST_OPERATION,
    NODE_LIST_OPERATION,
    CacheLayer,
    InMemoryCache,
    derive_tags,
)
from .config import ROBOTS_CONTENT_SETTING, AppConfig, DiscoveryOptions
from .content import ContentQueryAdapter, HttpContentQueryAdapter, InMemoryContentStore
from .filters import to_sitemap_node, visible_pages
from .generator import normalize_robots_text, render_llms_txt
from .logger import get_logger
from .models import PageRecord, SitemapNode
from .sitemap import build_sitemap_xml
from .url_utils import RequestContext
from .validators import ensure_discovery_options

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DiscoveryProvider:
    """
    Query -> filter -> cache -> render for sitemap.xml, llms.txt and robots.txt.

    Both cached lists come from the same query and visibility filter. They
    differ only in the cached payload: the node list keeps slim SitemapNode
    values, the detailed list keeps full PageRecord values with title and
    description. Each has its own cache namespace and TTL but the same tags.
    """

    def __init__(
        self,
        cache: CacheLayer,
        content: ContentQueryAdapter,
        options: DiscoveryOptions,
        channel_name: str,
        settings: Optional[Mapping[str, str]] = None,
        *,
        node_list_ttl_minutes: float = 3,
        detailed_list_ttl_minutes: float = 3,
        description_max_length: int = 0,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.options = ensure_discovery_options(options)
        self.cache = cache
        self.content = content
        self.channel_name = channel_name
        self.settings: Mapping[str, str] = settings if settings is not None else {}
        self.node_list_ttl_minutes = node_list_ttl_minutes
        self.detailed_list_ttl_minutes = detailed_list_ttl_minutes
        self.description_max_length = description_max_length
        self._now = now

    @property
    def tags(self) -> FrozenSet[str]:
        return derive_tags(self.options, self.channel_name)

    async def _load(self, *, detailed: bool) -> Sequence[Union[PageRecord, SitemapNode]]:
        operation = DETAILED_LIST_OPERATION if detailed else NODE_LIST_OPERATION
        ttl = self.detailed_list_ttl_minutes if detailed else self.node_list_ttl_minutes

        async def compute() -> tuple:
            records = await self.content.query(
                self.options.schema_name,
                self.channel_name,
                self.options.default_language,
            )
            pages = visible_pages(records, self.options)
            logger.info(
                f"Computed {operation} for channel '{self.channel_name}': "
                f"{len(pages)} of {len(records)} items visible"
            )
            if detailed:
                return tuple(pages)
            now = self._now()
            return tuple(to_sitemap_node(p, now) for p in pages)

        return await self.cache.load_or_compute(operation, compute, ttl, self.tags)

    async def list_sitemap_nodes(self) -> List[SitemapNode]:
        return list(await self._load(detailed=False))

    async def list_detailed_pages(self) -> List[PageRecord]:
        return list(await self._load(detailed=True))

    async def render_sitemap(self, request: Optional[RequestContext] = None) -> bytes:
        nodes = await self.list_sitemap_nodes()
        return build_sitemap_xml(nodes, request)

    async def render_llms_txt(self, request: RequestContext) -> str:
        pages = await self.list_detailed_pages()
        return render_llms_txt(
            self.channel_name,
            pages,
            request,
            description_max_length=self.description_max_length,
        )

    def render_robots_txt(self) -> str:
        # read on every call so setting changes show up without a restart
        return normalize_robots_text(self.settings.get(ROBOTS_CONTENT_SETTING))


def content_adapter_from_config(config: AppConfig) -> ContentQueryAdapter:
    source = config.content
    if source.source == "http":
        if not source.url:
            raise ValueError("Config `content.url` is required when content.source is 'http'")
        return HttpContentQueryAdapter(source.url, timeout=source.timeout)
    if not source.path:
        raise ValueError("Config `content.path` is required when content.source is 'file'")
    path = config.base_dir / source.path
    return InMemoryContentStore.from_file(path)


def provider_from_config(
    config: AppConfig,
    content: Optional[ContentQueryAdapter] = None,
    cache: Optional[CacheLayer] = None,
) -> DiscoveryProvider:
    return DiscoveryProvider(
        cache if cache is not None else InMemoryCache(),
        content if content is not None else content_adapter_from_config(config),
        config.discovery,
        config.site.channel,
        config.settings,
        node_list_ttl_minutes=config.cache.node_list_ttl_minutes,
        detailed_list_ttl_minutes=config.cache.detailed_list_ttl_minutes,
        description_max_length=config.llms.description_max_length,
    )
