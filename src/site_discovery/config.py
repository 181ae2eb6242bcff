from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .validators import ensure_discovery_options, validate_config_basic


ROBOTS_CONTENT_SETTING = "RobotsContent"


@dataclass(frozen=True)
class DiscoveryOptions:
    """Which schema, fields and content types take part in discovery."""

    schema_name: str
    default_language: str
    description_field_name: str
    title_field_name: str
    content_type_names: Tuple[str, ...]
    # optional - if empty, every page is included in the sitemap
    visibility_field_name: str = ""


@dataclass
class DiscoveryOptionsBuilder:
    """
    Mutable counterpart of DiscoveryOptions handed to registration callbacks.
    Freeze it with ``build()`` once populated.
    """

    schema_name: str = ""
    default_language: str = ""
    visibility_field_name: str = ""
    description_field_name: str = ""
    title_field_name: str = ""
    content_type_names: List[str] = field(default_factory=list)

    def build(self) -> DiscoveryOptions:
        return DiscoveryOptions(
            schema_name=self.schema_name,
            default_language=self.default_language,
            visibility_field_name=self.visibility_field_name or "",
            description_field_name=self.description_field_name,
            title_field_name=self.title_field_name,
            content_type_names=tuple(self.content_type_names or ()),
        )


@dataclass
class SiteConfig:
    channel: str
    # only used when generating files offline (no live request to take host from)
    base_url: Optional[str] = None


@dataclass
class CacheConfig:
    node_list_ttl_minutes: int = 3
    detailed_list_ttl_minutes: int = 3


@dataclass
class LlmsConfig:
    # 0 means descriptions are never truncated
    description_max_length: int = 0


@dataclass
class ContentSourceConfig:
    source: str = "file"
    path: Optional[str] = None
    url: Optional[str] = None
    timeout: int = 15


@dataclass
class OutputConfig:
    directory: str = "public"
    sitemap_xml: str = "sitemap.xml"
    llms_txt: str = "llms.txt"
    robots_txt: str = "robots.txt"
    llms_json: Optional[str] = None


@dataclass
class AppConfig:
    site: SiteConfig
    discovery: DiscoveryOptions
    cache: CacheConfig = field(default_factory=CacheConfig)
    llms: LlmsConfig = field(default_factory=LlmsConfig)
    content: ContentSourceConfig = field(default_factory=ContentSourceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    # read at render time; kept mutable so hosts can update RobotsContent live
    settings: Dict[str, str] = field(default_factory=dict)
    # directory of the config file, used to resolve relative paths
    base_dir: Path = field(default_factory=Path.cwd)


def _load_raw_config(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return data


def _discovery_options_from_raw(raw: Dict[str, Any]) -> DiscoveryOptions:
    builder = DiscoveryOptionsBuilder(
        schema_name=str(raw.get("schema_name") or ""),
        default_language=str(raw.get("default_language") or ""),
        visibility_field_name=str(raw.get("visibility_field") or ""),
        description_field_name=str(raw.get("description_field") or ""),
        title_field_name=str(raw.get("title_field") or ""),
        content_type_names=[str(t) for t in (raw.get("content_types") or [])],
    )
    return builder.build()


def load_config(path: Path, validate: bool = True) -> AppConfig:
    raw = _load_raw_config(path)

    if validate:
        errors = validate_config_basic(raw)
        if errors:
            raise ValueError("\n".join(errors))

    site_raw = raw.get("site") or {}
    if not site_raw.get("channel"):
        raise ValueError("Config `site.channel` is required")
    base_url = site_raw.get("base_url")
    site = SiteConfig(
        channel=str(site_raw["channel"]),
        base_url=str(base_url).rstrip("/") if base_url else None,
    )

    discovery = _discovery_options_from_raw(raw.get("discovery") or {})
    if validate:
        ensure_discovery_options(discovery)

    cache_raw = raw.get("cache") or {}
    cache = CacheConfig(
        node_list_ttl_minutes=int(cache_raw.get("node_list_ttl_minutes", 3)),
        detailed_list_ttl_minutes=int(cache_raw.get("detailed_list_ttl_minutes", 3)),
    )

    llms_raw = raw.get("llms") or {}
    llms = LlmsConfig(
        description_max_length=int(llms_raw.get("description_max_length", 0) or 0),
    )

    content_raw = raw.get("content") or {}
    content = ContentSourceConfig(
        source=str(content_raw.get("source", "file")),
        path=content_raw.get("path"),
        url=content_raw.get("url"),
        timeout=int(content_raw.get("timeout", 15)),
    )

    output_raw = raw.get("output") or {}
    output = OutputConfig(
        directory=str(output_raw.get("directory", "public")),
        sitemap_xml=str(output_raw.get("sitemap_xml", "sitemap.xml")),
        llms_txt=str(output_raw.get("llms_txt", "llms.txt")),
        robots_txt=str(output_raw.get("robots_txt", "robots.txt")),
        llms_json=output_raw.get("llms_json"),
    )

    settings_raw = raw.get("settings") or {}
    settings = {
        str(k): str(v) for k, v in settings_raw.items() if v is not None
    }

    return AppConfig(
        site=site,
        discovery=discovery,
        cache=cache,
        llms=llms,
        content=content,
        output=output,
        settings=settings,
        base_dir=path.resolve().parent,
    )
