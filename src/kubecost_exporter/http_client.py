"""Shared HTTP client utilities for the Allocation API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from .constants import HTTP_TIMEOUT, USER_AGENT

POOL_LIMITS = httpx.Limits(max_keepalive_connections=5, max_connections=10)


@asynccontextmanager
async def get_client(timeout: float = HTTP_TIMEOUT) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured AsyncClient with sane defaults.

    The client follows redirects and sets a deterministic user agent so the
    exporter's requests are easy to pick out of the API's access logs.
    """
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        limits=POOL_LIMITS,
        headers={
            "accept": "application/json",
            "user-agent": USER_AGENT,
        },
        follow_redirects=True,
    ) as client:
        yield client
