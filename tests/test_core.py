"""
Core test suite for site-discovery
Run with: pytest tests/test_core.py -v
"""

from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import make_item, sample_items
from site_discovery.cache import (
    DETAILED_LIST_OPERATION,
    NODE_LIST_OPERATION,
    cache_key,
    content_change_tag,
    derive_tags,
)
from site_discovery.config import load_config
from site_discovery.filters import is_in_sitemap, project_record, to_sitemap_node, visible_pages
from site_discovery.url_utils import RequestContext, absolute_url, normalize_url_path


class TestProjection:
    def test_project_record_copies_system_fields(self, options):
        item = make_item(7, "contact", "/Contact/Us", fields={"MetaTitle": "Contact"})
        page = project_record(item, options)
        assert page.id == 7
        assert page.global_id == item.guid
        assert page.name == "contact"
        assert page.order == 7
        assert page.tree_path == "/contact"
        assert page.language_id == 1
        assert page.version_status == "published"
        assert page.content_type_id == 10
        assert page.is_secured is False
        assert page.title == "Contact"

    def test_url_path_is_lowercased(self, options):
        page = project_record(make_item(1, "x", "/About-Us/Team"), options)
        assert page.url_path == "/about-us/team"

    def test_missing_text_fields_become_empty(self, options):
        page = project_record(make_item(1, "x", "/x", fields={"MetaTitle": None}), options)
        assert page.title == ""
        assert page.description == ""


class TestVisibility:
    def test_no_visibility_field_includes_everything(self, options):
        opts = replace(options, visibility_field_name="")
        for fields in ({"ShowInSitemap": False}, {"ShowInSitemap": None}, {}):
            assert is_in_sitemap(make_item(1, "x", "/x", fields=fields), opts) is True

    def test_visibility_field_false_or_missing_excludes(self, options):
        assert is_in_sitemap(make_item(1, "x", "/x", fields={"ShowInSitemap": True}), options) is True
        assert is_in_sitemap(make_item(1, "x", "/x", fields={"ShowInSitemap": False}), options) is False
        assert is_in_sitemap(make_item(1, "x", "/x", fields={"ShowInSitemap": None}), options) is False
        assert is_in_sitemap(make_item(1, "x", "/x", fields={}), options) is False

    def test_visible_pages_keep_query_order(self, options):
        items = sample_items()[:3]
        pages = visible_pages(items, options)
        assert [p.id for p in pages] == [1, 3]

    def test_sitemap_node_projection(self, options):
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        page = project_record(make_item(1, "home", "/Home"), options)
        node = to_sitemap_node(page, now)
        assert node.path == "/home"
        assert node.last_modified == now
        assert node.change_frequency == "weekly"


class TestCacheKeyPolicy:
    def test_derive_tags(self, options):
        opts = replace(options, content_type_names=("Article", "Page"))
        assert derive_tags(opts, "main") == {
            "channel:main|contentType:Article",
            "channel:main|contentType:Page",
        }

    def test_derive_tags_is_order_independent(self, options):
        a = derive_tags(replace(options, content_type_names=("Article", "Page")), "main")
        b = derive_tags(replace(options, content_type_names=("Page", "Article")), "main")
        assert a == b

    def test_change_tag_matches_derived_tag(self, options):
        assert content_change_tag("main", "Page") in derive_tags(options, "main")

    def test_operations_use_separate_keys(self, options):
        tags = derive_tags(options, "main")
        assert cache_key(NODE_LIST_OPERATION, tags) != cache_key(DETAILED_LIST_OPERATION, tags)
        assert cache_key(NODE_LIST_OPERATION, tags) == cache_key(NODE_LIST_OPERATION, set(tags))


class TestUrlUtils:
    def test_normalize_url_path(self):
        assert normalize_url_path("~/About") == "/about"
        assert normalize_url_path("news/Latest") == "/news/latest"
        assert normalize_url_path("") == "/"

    def test_absolute_url(self):
        request = RequestContext(scheme="https", host="example.com", path_base="/site")
        assert absolute_url("/about", request) == "https://example.com/site/about"
        assert absolute_url("~/about", request) == "https://example.com/site/about"
        assert absolute_url("about", request) == "https://example.com/site/about"

    def test_request_context_from_base_url(self):
        ctx = RequestContext.from_base_url("https://Example.com/site/")
        assert ctx == RequestContext(scheme="https", host="example.com", path_base="/site")
        assert ctx.root == "https://example.com/site"
        assert RequestContext.from_base_url("https://example.com").root == "https://example.com"


CONFIG_YAML = """
site:
  channel: "main"
  base_url: "https://example.com/"
discovery:
  schema_name: "SeoFields"
  default_language: "en"
  visibility_field: "ShowInSitemap"
  description_field: "MetaDescription"
  title_field: "MetaTitle"
  content_types: ["Article", "Page"]
cache:
  node_list_ttl_minutes: 5
llms:
  description_max_length: 120
content:
  source: "file"
  path: "content.yml"
settings:
  RobotsContent: |
    User-agent: *
"""


class TestConfigLoading:
    def test_load_config(self, tmp_path: Path):
        path = tmp_path / "discovery.config.yml"
        path.write_text(CONFIG_YAML, encoding="utf-8")
        config = load_config(path)

        assert config.site.channel == "main"
        assert config.site.base_url == "https://example.com"
        assert config.discovery.schema_name == "SeoFields"
        assert config.discovery.content_type_names == ("Article", "Page")
        assert config.cache.node_list_ttl_minutes == 5
        assert config.cache.detailed_list_ttl_minutes == 3
        assert config.llms.description_max_length == 120
        assert config.content.path == "content.yml"
        assert config.settings["RobotsContent"].startswith("User-agent")
        assert config.output.sitemap_xml == "sitemap.xml"
        assert config.base_dir == tmp_path.resolve()

    def test_missing_required_option_fails(self, tmp_path: Path):
        path = tmp_path / "discovery.config.yml"
        path.write_text(CONFIG_YAML.replace('title_field: "MetaTitle"', ""), encoding="utf-8")
        with pytest.raises(ValueError, match="title_field_name"):
            load_config(path)

    def test_root_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "discovery.config.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)
