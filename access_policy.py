#!/usr/bin/env python3
"""
Authorization policies consulted by the MCP host before running a search.

The search engine itself never sees these; the development bypass is just the
AllowAll policy selected by MAPS_ALLOW_ANONYMOUS.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from maps_config import Settings

logger = logging.getLogger(__name__)


class AuthorizationPolicy(Protocol):
    def is_allowed(self, principal: Optional[str]) -> bool:
        ...


class AllowAuthenticated:
    """Only callers with a known principal may search."""

    def is_allowed(self, principal: Optional[str]) -> bool:
        return bool(principal and principal.strip())


class AllowAll:
    """Development bypass: anonymous callers are accepted."""

    def is_allowed(self, principal: Optional[str]) -> bool:
        return True


def policy_from_settings(settings: Settings) -> AuthorizationPolicy:
    if settings.allow_anonymous:
        logger.warning("MAPS_ALLOW_ANONYMOUS is enabled; searches run without authentication")
        return AllowAll()
    return AllowAuthenticated()
