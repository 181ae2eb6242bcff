from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List

from .config import DiscoveryOptions
from .content import FieldRecord
from .models import CHANGE_FREQUENCY_WEEKLY, PageRecord, SitemapNode
from .url_utils import normalize_url_path


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _string_field(record: FieldRecord, name: str) -> str:
    value, found = record.try_get_field(name)
    if not found or value is None:
        return ""
    return str(value)


def is_in_sitemap(record: FieldRecord, options: DiscoveryOptions) -> bool:
    """
    Without a configured visibility field every page is listed; otherwise the
    field must exist and be true.
    """
    field_name = (options.visibility_field_name or "").strip()
    if not field_name:
        return True
    value, found = record.try_get_field(field_name)
    return found and _as_bool(value)


def project_record(record: FieldRecord, options: DiscoveryOptions) -> PageRecord:
    return PageRecord(
        id=record.id,
        global_id=str(record.guid),
        name=record.name,
        order=record.order,
        tree_path=record.tree_path,
        url_path=normalize_url_path(record.url_path),
        language_id=record.language_id,
        version_status=record.version_status,
        content_type_id=record.content_type_id,
        is_secured=record.is_secured,
        include_in_sitemap=is_in_sitemap(record, options),
        title=_string_field(record, options.title_field_name),
        description=_string_field(record, options.description_field_name),
    )


def visible_pages(records: Iterable[FieldRecord], options: DiscoveryOptions) -> List[PageRecord]:
    """Project query results and keep the sitemap-visible ones, in query order."""
    pages = (project_record(r, options) for r in records)
    return [p for p in pages if p.include_in_sitemap]


def to_sitemap_node(page: PageRecord, now: datetime) -> SitemapNode:
    # lastmod is the generation time; records carry no modification timestamp
    return SitemapNode(
        path=page.url_path,
        last_modified=now,
        change_frequency=CHANGE_FREQUENCY_WEEKLY,
    )
