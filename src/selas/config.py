"""
Configuration management for selas

This module holds the backend endpoint the client connects to. Values come
from keyword arguments to :func:`configure` or from the environment.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import SelasConfig


DEFAULT_URL = "https://rmsiaqinsugszccqhnpj.supabase.co"
# Public anon key of the hosted project; row level security does the rest.
DEFAULT_ANON_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJpc3MiOiJzdXBhYmFzZSIsInJlZiI6InJtc2lhcWluc3Vnc3pjY3FobnBqIiwicm9sZSI6ImFub24iLCJpYXQiOjE2NjMxNDk1OTksImV4cCI6MTk3ODcyNTU5OX0."
    "wp5GBiK4k4xQUJk_kdkW9a_mOt8C8x08pPgeTQErb9E"
)


def _get_env(key: str) -> str | None:
    """Get environment variable value."""
    return os.environ.get(key)


_global_config: dict[str, str | None] = {
    "url": _get_env("SELAS_URL") or DEFAULT_URL,
    "anon_key": _get_env("SELAS_ANON_KEY") or DEFAULT_ANON_KEY,
}


def configure(
    *,
    url: str | None = None,
    anon_key: str | None = None,
) -> None:
    """
    Configure the backend endpoint.

    Args:
        url: Base URL of the Selas backend project
        anon_key: Public (anon) API key of the backend project

    Example::

        from selas import configure

        configure(url="https://my-project.supabase.co", anon_key="eyJ...")
    """
    if url is not None:
        _global_config["url"] = url
    if anon_key is not None:
        _global_config["anon_key"] = anon_key


def get_config() -> "SelasConfig":
    """
    Get the current configuration.

    Returns:
        Current configuration object

    Example::

        from selas import get_config

        print(f"Backend: {get_config().url}")
    """
    from .types import SelasConfig

    return SelasConfig(
        url=_global_config["url"] or DEFAULT_URL,
        anon_key=_global_config["anon_key"] or DEFAULT_ANON_KEY,
    )


def configure_from_env() -> None:
    """
    Configure from environment variables.

    Reads from:
        - SELAS_URL
        - SELAS_ANON_KEY
    """
    configure(
        url=_get_env("SELAS_URL"),
        anon_key=_get_env("SELAS_ANON_KEY"),
    )

