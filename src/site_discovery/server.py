"""
HTTP boundary: sitemap.xml, llms.txt and robots.txt as public GET routes.

Hosts register discovery once at startup with ``add_website_discovery``;
a provider is then built per request from the registered collaborators.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from .cache import CacheLayer, InMemoryCache
from .config import AppConfig, DiscoveryOptions, DiscoveryOptionsBuilder
from .content import ContentQueryAdapter
from .errors import ContentQueryError, DiscoveryConfigError
from .generator import LLMS_CONTENT_TYPE, ROBOTS_CONTENT_TYPE
from .logger import get_logger
from .provider import DiscoveryProvider, content_adapter_from_config
from .sitemap import SITEMAP_CONTENT_TYPE
from .url_utils import RequestContext
from .validators import ensure_discovery_options

logger = get_logger(__name__)

router = APIRouter(include_in_schema=False)


@dataclass(frozen=True)
class DiscoveryRegistration:
    options: DiscoveryOptions
    content: ContentQueryAdapter
    cache: CacheLayer
    channel_name: str
    settings: Mapping[str, str]
    node_list_ttl_minutes: float = 3
    detailed_list_ttl_minutes: float = 3
    description_max_length: int = 0


def add_website_discovery(
    app: FastAPI,
    configure: Callable[[DiscoveryOptionsBuilder], None],
    *,
    content: ContentQueryAdapter,
    channel_name: str,
    cache: Optional[CacheLayer] = None,
    settings: Optional[Mapping[str, str]] = None,
    node_list_ttl_minutes: float = 3,
    detailed_list_ttl_minutes: float = 3,
    description_max_length: int = 0,
) -> DiscoveryOptions:
    """
    Register discovery routes on ``app``.

    ``configure`` populates a DiscoveryOptionsBuilder; the frozen result is
    validated here so missing options fail at startup, not on first request.
    """
    if configure is None:
        raise DiscoveryConfigError("A configure callback is required.")

    builder = DiscoveryOptionsBuilder()
    configure(builder)
    options = ensure_discovery_options(builder.build())

    app.state.discovery = DiscoveryRegistration(
        options=options,
        content=content,
        cache=cache if cache is not None else InMemoryCache(),
        channel_name=channel_name,
        settings=settings if settings is not None else {},
        node_list_ttl_minutes=node_list_ttl_minutes,
        detailed_list_ttl_minutes=detailed_list_ttl_minutes,
        description_max_length=description_max_length,
    )
    app.include_router(router)
    app.add_exception_handler(ContentQueryError, _content_query_error_handler)
    logger.info(
        f"Registered website discovery for channel '{channel_name}' "
        f"({len(options.content_type_names)} content types)"
    )
    return options


async def _content_query_error_handler(request: Request, exc: ContentQueryError) -> Response:
    logger.error(f"Discovery request {request.url.path} failed: {exc}")
    return PlainTextResponse("Content store unavailable.", status_code=503)


def get_discovery_provider(request: Request) -> DiscoveryProvider:
    reg: DiscoveryRegistration = request.app.state.discovery
    return DiscoveryProvider(
        reg.cache,
        reg.content,
        reg.options,
        reg.channel_name,
        reg.settings,
        node_list_ttl_minutes=reg.node_list_ttl_minutes,
        detailed_list_ttl_minutes=reg.detailed_list_ttl_minutes,
        description_max_length=reg.description_max_length,
    )


def request_context(request: Request) -> RequestContext:
    return RequestContext(
        scheme=request.url.scheme,
        host=request.url.netloc,
        path_base=(request.scope.get("root_path") or "").rstrip("/"),
    )


@router.get("/sitemap.xml")
async def sitemap_xml(
    request: Request,
    provider: DiscoveryProvider = Depends(get_discovery_provider),
) -> Response:
    body = await provider.render_sitemap(request_context(request))
    return Response(content=body, media_type=SITEMAP_CONTENT_TYPE)


@router.get("/llms.txt")
async def llms_txt(
    request: Request,
    provider: DiscoveryProvider = Depends(get_discovery_provider),
) -> Response:
    body = await provider.render_llms_txt(request_context(request))
    return Response(content=body, media_type=LLMS_CONTENT_TYPE)


@router.get("/robots.txt")
async def robots_txt(provider: DiscoveryProvider = Depends(get_discovery_provider)) -> Response:
    return PlainTextResponse(provider.render_robots_txt(), media_type=ROBOTS_CONTENT_TYPE)


def create_app(
    config: AppConfig,
    content: Optional[ContentQueryAdapter] = None,
    cache: Optional[CacheLayer] = None,
) -> FastAPI:
    """Build a standalone app serving the discovery routes for ``config``."""
    app = FastAPI(
        title="Site Discovery",
        description="sitemap.xml, llms.txt and robots.txt for a content channel.",
        version="0.1.0",
    )

    def configure(opts: DiscoveryOptionsBuilder) -> None:
        opts.schema_name = config.discovery.schema_name
        opts.default_language = config.discovery.default_language
        opts.visibility_field_name = config.discovery.visibility_field_name
        opts.description_field_name = config.discovery.description_field_name
        opts.title_field_name = config.discovery.title_field_name
        opts.content_type_names = list(config.discovery.content_type_names)

    add_website_discovery(
        app,
        configure,
        content=content if content is not None else content_adapter_from_config(config),
        channel_name=config.site.channel,
        cache=cache,
        settings=config.settings,
        node_list_ttl_minutes=config.cache.node_list_ttl_minutes,
        detailed_list_ttl_minutes=config.cache.detailed_list_ttl_minutes,
        description_max_length=config.llms.description_max_length,
    )
    return app
