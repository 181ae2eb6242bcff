"""
Site Discovery

sitemap.xml, llms.txt & robots.txt for content-managed websites.
"""

__all__ = [
    "__version__",
    "cache",
    "config",
    "content",
    "filters",
    "generator",
    "provider",
    "server",
    "sitemap",
    "text_utils",
]

__version__ = "0.1.0"
