from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from site_discovery.config import DiscoveryOptions
from site_discovery.content import ContentItem, InMemoryContentStore
from site_discovery.errors import ContentQueryError


def make_item(item_id: int, name: str, url_path: str, **overrides) -> ContentItem:
    data = dict(
        id=item_id,
        guid=f"00000000-0000-0000-0000-{item_id:012d}",
        name=name,
        url_path=url_path,
        channel="main",
        language="en",
        content_type="Page",
        order=item_id,
        tree_path=f"/{name}",
        language_id=1,
        content_type_id=10,
        schemas=["SeoFields"],
        fields={},
    )
    data.update(overrides)
    return ContentItem(**data)


def sample_items() -> List[ContentItem]:
    """Three matching pages (one hidden) plus items filtered out by the query."""
    return [
        make_item(
            1,
            "home",
            "/Home",
            fields={
                "ShowInSitemap": True,
                "MetaTitle": "Welcome <b>home</b>",
                "MetaDescription": "Start here.",
            },
        ),
        make_item(
            2,
            "about-us",
            "/About-Us",
            content_type="Article",
            fields={
                "ShowInSitemap": False,
                "MetaTitle": "About us",
                "MetaDescription": "Who we are",
            },
        ),
        make_item(
            3,
            "pricing",
            "/pricing",
            fields={"ShowInSitemap": True, "MetaTitle": "", "MetaDescription": ""},
        ),
        make_item(4, "startseite", "/de/home", language="de", fields={"ShowInSitemap": True}),
        make_item(5, "intranet", "/intranet", channel="intranet", fields={"ShowInSitemap": True}),
        make_item(6, "asset", "/asset", schemas=["Media"], fields={"ShowInSitemap": True}),
    ]


class CountingStore(InMemoryContentStore):
    """In-memory store that records how often it was queried."""

    def __init__(self, items=None) -> None:
        super().__init__(items)
        self.calls = 0

    async def query(self, schema_name, channel, language):
        self.calls += 1
        return await super().query(schema_name, channel, language)


class FlakyStore(CountingStore):
    """Fails the first ``failures`` queries, then answers normally."""

    def __init__(self, items=None, failures: int = 1) -> None:
        super().__init__(items)
        self.failures = failures

    async def query(self, schema_name, channel, language):
        if self.failures > 0:
            self.failures -= 1
            self.calls += 1
            raise ContentQueryError("store unavailable")
        return await super().query(schema_name, channel, language)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def options() -> DiscoveryOptions:
    return DiscoveryOptions(
        schema_name="SeoFields",
        default_language="en",
        visibility_field_name="ShowInSitemap",
        description_field_name="MetaDescription",
        title_field_name="MetaTitle",
        content_type_names=("Article", "Page"),
    )


@pytest.fixture
def store() -> CountingStore:
    return CountingStore(sample_items())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
