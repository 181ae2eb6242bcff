from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

CHANGE_FREQUENCY_WEEKLY = "weekly"


@dataclass(frozen=True)
class PageRecord:
    """One discovered content item, projected from a content query result."""

    id: int
    global_id: str
    name: str
    order: int
    tree_path: str
    url_path: str
    language_id: int
    version_status: str
    content_type_id: int
    is_secured: bool
    include_in_sitemap: bool
    title: str
    description: str


@dataclass(frozen=True)
class SitemapNode:
    path: str
    last_modified: datetime
    change_frequency: str = CHANGE_FREQUENCY_WEEKLY
