from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from .logger import get_logger
from .models import PageRecord
from .sitemap import write_sitemap_xml
from .text_utils import sanitize, slug, strip_markup, truncate
from .url_utils import RequestContext, absolute_url

if TYPE_CHECKING:
    from .config import AppConfig
    from .provider import DiscoveryProvider

logger = get_logger(__name__)

LLMS_CONTENT_TYPE = "text/plain; charset=utf-8"
ROBOTS_CONTENT_TYPE = "text/plain"

_LINE_BREAK_RE = re.compile(r"[\r\n]+")


def display_title(page: PageRecord) -> str:
    """Page title, falling back to the content item name when nothing is left after sanitizing."""
    return page.title if sanitize(page.title).strip() else page.name


def _description(page: PageRecord, max_length: int) -> str:
    if max_length > 0:
        # cut before escaping so an escape sequence is never split
        return sanitize(truncate(strip_markup(page.description), max_length))
    return sanitize(page.description)


def render_llms_txt(
    channel_name: str,
    pages: Sequence[PageRecord],
    request: RequestContext,
    *,
    description_max_length: int = 0,
) -> str:
    """
    Render the llms.txt digest:

        # <channel>

        ## Pages

        - [title](url): description
        - [title](url)
    """
    lines: List[str] = []
    lines.append(f"# {channel_name}")
    lines.append("")
    lines.append("## Pages")
    lines.append("")

    for page in pages:
        title = sanitize(display_title(page))
        url = absolute_url(page.url_path, request)
        desc = _description(page, description_max_length)
        if desc:
            lines.append(f"- [{title}]({url}): {desc}")
        else:
            lines.append(f"- [{title}]({url})")

    return "\n".join(lines) + "\n"


def normalize_robots_text(value: Optional[str]) -> str:
    """
    Echo configured robots.txt content:
    - split on any CR/LF run, dropping empty lines
    - strip leading whitespace of each kept line
    - join with "\\n"
    """
    if not value:
        return ""
    lines = [line for line in _LINE_BREAK_RE.split(value) if line]
    return "\n".join(line.lstrip() for line in lines)


def build_llms_json(
    channel_name: str,
    pages: Sequence[PageRecord],
    request: RequestContext,
) -> Dict[str, Any]:
    return {
        "site": {
            "channel": channel_name,
            "root": request.root,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "tool": "site-discovery",
        },
        "pages": [
            {
                "id": p.id,
                "anchor": slug(p.name),
                "url": absolute_url(p.url_path, request),
                "path": p.url_path,
                "title": strip_markup(display_title(p)),
                "description": strip_markup(p.description),
            }
            for p in pages
        ],
    }


def write_llms_json(data: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info(f"Wrote llms.json to {path}")


def _resolve(base: Path, name: str) -> Path:
    p = Path(name)
    return p if p.is_absolute() else base / p


async def generate_discovery_files(
    config: "AppConfig",
    provider: "DiscoveryProvider",
    request: RequestContext,
    *,
    dry_run: bool = False,
) -> Dict[str, Path]:
    """
    Write sitemap.xml, llms.txt and robots.txt (plus llms.json when
    configured) into the output directory. Returns artifact name -> path.
    With dry_run, only counts are logged and nothing is written.
    """
    if dry_run:
        nodes = await provider.list_sitemap_nodes()
        pages = await provider.list_detailed_pages()
        logger.info(f"Sitemap entries: {len(nodes)}")
        logger.info(f"llms.txt pages: {len(pages)}")
        for p in pages[:10]:
            logger.info(f"  {p.url_path}  {display_title(p)}")
        return {}

    out_dir = _resolve(config.base_dir, config.output.directory)
    written: Dict[str, Path] = {}

    sitemap_path = _resolve(out_dir, config.output.sitemap_xml)
    write_sitemap_xml(await provider.render_sitemap(request), sitemap_path)
    written["sitemap_xml"] = sitemap_path

    llms_path = _resolve(out_dir, config.output.llms_txt)
    llms_path.parent.mkdir(parents=True, exist_ok=True)
    llms_path.write_text(await provider.render_llms_txt(request), encoding="utf-8")
    logger.info(f"Wrote llms.txt to {llms_path}")
    written["llms_txt"] = llms_path

    robots_path = _resolve(out_dir, config.output.robots_txt)
    robots_path.parent.mkdir(parents=True, exist_ok=True)
    robots_path.write_text(provider.render_robots_txt(), encoding="utf-8")
    logger.info(f"Wrote robots.txt to {robots_path}")
    written["robots_txt"] = robots_path

    if config.output.llms_json:
        json_path = _resolve(out_dir, config.output.llms_json)
        pages = await provider.list_detailed_pages()
        write_llms_json(build_llms_json(config.site.channel, pages, request), json_path)
        written["llms_json"] = json_path

    return written
