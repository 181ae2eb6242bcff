import argparse
import asyncio
import sys
from pathlib import Path

from .config import load_config
from .errors import ContentQueryError
from .generator import generate_discovery_files
from .logger import set_log_level
from .provider import provider_from_config
from .url_utils import RequestContext


DEFAULT_CONFIG_NAME = "discovery.config.yml"


def cmd_init(args):
    """Create a starter config file in the current directory."""
    target = Path(args.path or DEFAULT_CONFIG_NAME)
    if target.exists() and not args.force:
        print(f"[WARN] Config file already exists: {target}", file=sys.stderr)
        return 1

    template = """# Site discovery config
#
# Usually you only need to change:
# 1) site.channel          - the content channel to publish
# 2) discovery             - schema, field names and content types
# 3) content               - where content items come from
# 4) settings.RobotsContent

site:
  channel: "main"
  # Only used by `generate` to build absolute URLs offline
  base_url: "https://example.com"

discovery:
  schema_name: "SeoFields"
  default_language: "en"
  # Optional: boolean field that hides a page from the sitemap when false
  visibility_field: "ShowInSitemap"
  description_field: "MetaDescription"
  title_field: "MetaTitle"
  # Changes to these content types evict cached results
  content_types:
    - "Article"
    - "Page"

cache:
  node_list_ttl_minutes: 3
  detailed_list_ttl_minutes: 3

llms:
  # 0 keeps full descriptions
  description_max_length: 0

content:
  source: "file"
  path: "content.yml"
  # source: "http"
  # url: "https://cms.example.com/api/discovery/items"
  # timeout: 15

settings:
  RobotsContent: |
    User-agent: *
    Disallow: /admin/
    Sitemap: https://example.com/sitemap.xml

output:
  directory: "public"
  sitemap_xml: "sitemap.xml"
  llms_txt: "llms.txt"
  robots_txt: "robots.txt"
  # Optional: JSON digest of the llms.txt pages
  # llms_json: "llms.json"
"""
    target.write_text(template, encoding="utf-8")
    print(f"[OK] Created config file: {target}")
    return 0


def _load(args):
    config_path = Path(args.config or DEFAULT_CONFIG_NAME)
    if not config_path.exists():
        print(
            f"[ERROR] Config file not found: {config_path}. "
            f"Run `site-discovery init` first.",
            file=sys.stderr,
        )
        return None

    try:
        return load_config(config_path, validate=not getattr(args, "no_validate", False))
    except ValueError as e:
        print("[ERROR] Config validation failed:", file=sys.stderr)
        print(f"{e}", file=sys.stderr)
        return None
    except OSError as e:
        print(f"[ERROR] Failed to load config: {e}", file=sys.stderr)
        return None


def cmd_generate(args):
    """Render sitemap.xml, llms.txt and robots.txt into the output directory."""
    config = _load(args)
    if config is None:
        return 1

    base_url = getattr(args, "base_url", None) or config.site.base_url
    if not base_url:
        print(
            "[ERROR] A base URL is needed to build absolute links. "
            "Set site.base_url or pass --base-url.",
            file=sys.stderr,
        )
        return 1

    try:
        provider = provider_from_config(config)
        written = asyncio.run(
            generate_discovery_files(
                config,
                provider,
                RequestContext.from_base_url(base_url),
                dry_run=bool(getattr(args, "dry_run", False)),
            )
        )
    except ContentQueryError as e:
        print(f"[ERROR] Content query failed: {e}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"[ERROR] Failed to load content: {e}", file=sys.stderr)
        return 1

    for name, path in written.items():
        print(f"[OK] {name}: {path}")
    return 0


def cmd_serve(args):
    """Serve the discovery routes over HTTP."""
    config = _load(args)
    if config is None:
        return 1

    import uvicorn
    from .server import create_app

    try:
        app = create_app(config)
    except (ValueError, OSError) as e:
        print(f"[ERROR] Failed to start: {e}", file=sys.stderr)
        return 1

    uvicorn.run(app, host=args.host, port=args.port, root_path=args.root_path or "")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="site-discovery",
        description="sitemap.xml, llms.txt and robots.txt from CMS content.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # init
    p_init = subparsers.add_parser(
        "init", help=f"Create a starter {DEFAULT_CONFIG_NAME} in current directory."
    )
    p_init.add_argument(
        "-p",
        "--path",
        help=f"Config file path (default: {DEFAULT_CONFIG_NAME})",
    )
    p_init.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing config file.",
    )
    p_init.set_defaults(func=cmd_init)

    # generate
    p_gen = subparsers.add_parser(
        "generate",
        help="Write sitemap.xml, llms.txt and robots.txt to the output directory.",
    )
    p_gen.add_argument(
        "-c",
        "--config",
        help=f"Config file path (default: {DEFAULT_CONFIG_NAME})",
    )
    p_gen.add_argument(
        "--base-url",
        help="Public site URL used for absolute links (overrides site.base_url).",
    )
    p_gen.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not write files; only print counts and sample pages.",
    )
    p_gen.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip configuration validation (not recommended).",
    )
    p_gen.set_defaults(func=cmd_generate)

    # serve
    p_serve = subparsers.add_parser("serve", help="Serve the discovery routes over HTTP.")
    p_serve.add_argument(
        "-c",
        "--config",
        help=f"Config file path (default: {DEFAULT_CONFIG_NAME})",
    )
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind address.")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port.")
    p_serve.add_argument("--root-path", help="Path prefix when served behind a proxy.")
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    set_log_level(args.log_level)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 1

    return int(func(args)) or 0


if __name__ == "__main__":
    raise SystemExit(main())
