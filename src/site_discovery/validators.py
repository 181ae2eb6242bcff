"""
Configuration validation helpers.
Used both for the raw YAML config and for the discovery options a host
registers at startup.
"""
from __future__ import annotations

from urllib.parse import urlparse
from typing import Any, List, Tuple

from .errors import DiscoveryConfigError


def validate_url(url: str) -> Tuple[bool, str]:
    """
    Check that a URL is absolute http(s).

    Returns:
        (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL must not be empty"

    url = url.strip()
    if not url:
        return False, "URL must not be empty"

    try:
        parsed = urlparse(url)
        if not parsed.scheme:
            return False, f"URL is missing a scheme: {url}"
        if parsed.scheme not in ("http", "https"):
            return False, f"URL scheme must be http or https: {url}"
        if not parsed.netloc:
            return False, f"URL is missing a host: {url}"
        return True, ""
    except ValueError as e:
        return False, f"Invalid URL: {e}"


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def check_discovery_options(options: Any) -> Tuple[bool, str]:
    """
    Check discovery options and report the first unmet requirement.

    Order: schema name, default language, description field, title field,
    content types. The visibility field is optional.

    Returns:
        (is_valid, error_message)
    """
    if options is None:
        return False, "Discovery options must be provided."
    if _blank(getattr(options, "schema_name", None)):
        return False, "DiscoveryOptions.schema_name must be configured."
    if _blank(getattr(options, "default_language", None)):
        return False, "DiscoveryOptions.default_language must be configured."
    if _blank(getattr(options, "description_field_name", None)):
        return False, "DiscoveryOptions.description_field_name must be configured."
    if _blank(getattr(options, "title_field_name", None)):
        return False, "DiscoveryOptions.title_field_name must be configured."
    content_types = getattr(options, "content_type_names", None)
    if not content_types:
        return False, "DiscoveryOptions.content_type_names must contain at least one content type."
    return True, ""


def ensure_discovery_options(options: Any) -> Any:
    """Raise DiscoveryConfigError unless ``options`` is complete; return it otherwise."""
    is_valid, msg = check_discovery_options(options)
    if not is_valid:
        raise DiscoveryConfigError(msg)
    return options


def validate_config_basic(config_dict: dict) -> List[str]:
    """
    Validate the structure of a raw config mapping.

    Returns:
        List of error messages (empty list means no errors)
    """
    errors: List[str] = []

    if not isinstance(config_dict, dict):
        errors.append("Config file must be a YAML mapping")
        return errors

    site = config_dict.get("site")
    if not isinstance(site, dict):
        errors.append("Config is missing the 'site' section")
    else:
        if not site.get("channel"):
            errors.append("'site.channel' is required")
        base_url = site.get("base_url")
        if base_url:
            is_valid, msg = validate_url(base_url)
            if not is_valid:
                errors.append(f"'site.base_url' {msg}")

    discovery = config_dict.get("discovery")
    if not isinstance(discovery, dict):
        errors.append("Config is missing the 'discovery' section")
    else:
        content_types = discovery.get("content_types")
        if content_types is not None and not isinstance(content_types, list):
            errors.append("'discovery.content_types' must be a list")

    cache = config_dict.get("cache") or {}
    if not isinstance(cache, dict):
        errors.append("'cache' must be a mapping")
    else:
        for key in ("node_list_ttl_minutes", "detailed_list_ttl_minutes"):
            if key not in cache:
                continue
            try:
                if int(cache[key]) <= 0:
                    errors.append(f"'cache.{key}' must be a positive integer")
            except (TypeError, ValueError):
                errors.append(f"'cache.{key}' must be a positive integer")

    content = config_dict.get("content") or {}
    if not isinstance(content, dict):
        errors.append("'content' must be a mapping")
    else:
        source = content.get("source", "file")
        if source not in ("file", "http"):
            errors.append(f"'content.source' must be 'file' or 'http': {source}")
        elif source == "file" and not content.get("path"):
            errors.append("'content.path' is required (when source=file)")
        elif source == "http":
            url = content.get("url")
            if not url:
                errors.append("'content.url' is required (when source=http)")
            else:
                is_valid, msg = validate_url(url)
                if not is_valid:
                    errors.append(f"'content.url' {msg}")

    settings = config_dict.get("settings")
    if settings is not None and not isinstance(settings, dict):
        errors.append("'settings' must be a mapping")

    return errors
