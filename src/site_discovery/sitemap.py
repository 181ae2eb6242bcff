from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence
import xml.etree.ElementTree as ET

from .logger import get_logger
from .models import SitemapNode
from .url_utils import RequestContext, absolute_url

logger = get_logger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_CONTENT_TYPE = "application/xml"


def _format_lastmod(node: SitemapNode) -> str:
    return node.last_modified.replace(microsecond=0).isoformat()


def build_sitemap_xml(
    nodes: Sequence[SitemapNode],
    request: Optional[RequestContext] = None,
) -> bytes:
    """
    Serialize nodes into a single <urlset> document.
    - loc: absolute when a request context is known, the page path otherwise
    - lastmod / changefreq: taken from the node
    No sitemap index and no image/video extensions.
    """
    urlset = ET.Element("urlset", attrib={"xmlns": SITEMAP_NAMESPACE})

    for node in nodes:
        url_el = ET.SubElement(urlset, "url")
        loc_el = ET.SubElement(url_el, "loc")
        loc_el.text = absolute_url(node.path, request) if request else node.path
        lastmod_el = ET.SubElement(url_el, "lastmod")
        lastmod_el.text = _format_lastmod(node)
        changefreq_el = ET.SubElement(url_el, "changefreq")
        changefreq_el.text = node.change_frequency

    # utf-8 + XML declaration for compatibility with major search engines
    return ET.tostring(urlset, encoding="utf-8", xml_declaration=True)


def write_sitemap_xml(xml_bytes: bytes, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(xml_bytes)
    logger.info(f"Wrote sitemap.xml to {path}")
