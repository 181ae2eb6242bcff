from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for site-discovery failures."""


class DiscoveryConfigError(DiscoveryError, ValueError):
    """A required discovery option is missing or empty."""


class ContentQueryError(DiscoveryError):
    """The content store could not answer a discovery query."""
