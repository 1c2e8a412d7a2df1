"""
Allocation API client.

For documentation on the Kubecost Allocation API, see
https://docs.kubecost.com/apis/apis/allocation
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List, Optional
from urllib.parse import urlencode, urlunsplit

import httpx

from .constants import API_SCHEME, WINDOW_PARAMETER
from .models import AllocationRecord, AllocationResponse, ModelError
from .window import window_for

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to retrieve cost allocation data from Allocation API"


class AllocationFetchError(Exception):
    """Raised when an error or bad response is returned from the Allocation API."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{FETCH_FAILED_MESSAGE}: {detail}")


class AllocationTransportError(AllocationFetchError):
    """The request could not be sent or no response was received."""


class AllocationStatusError(AllocationFetchError):
    """The API answered with a status other than 200."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"unexpected status code: {status_code}")


class AllocationReadError(AllocationFetchError):
    """The response body could not be read."""


class AllocationDecodeError(AllocationFetchError):
    """The response body is not a valid allocation envelope."""


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(
    host: str,
    port: int,
    path: str,
    params: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> str:
    """
    Generate the Allocation API URL.

    Every configured parameter is passed through, except ``window``: its duration
    is replaced by the explicit start and end of the previous ``window`` worth of
    whole minutes (see ``kubecost_exporter.window``).
    """
    query = {key: _query_value(value) for key, value in params.items()}
    query[WINDOW_PARAMETER] = window_for(params.get(WINDOW_PARAMETER), now).to_query_value()
    return urlunsplit((API_SCHEME, f"{host}:{port}", path, urlencode(sorted(query.items())), ""))


class AllocationFetcher:
    """Retrieves and flattens cost allocation data."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def fetch(self, url: str) -> List[AllocationRecord]:
        """
        Retrieve cost allocation data from the Allocation API.

        Raises:
            AllocationTransportError: If the request fails
            AllocationStatusError: If the status code is not 200
            AllocationReadError: If the body cannot be read
            AllocationDecodeError: If the body is not a valid envelope
        """
        try:
            async with self._client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise AllocationStatusError(response.status_code)
                try:
                    body = await response.aread()
                except httpx.HTTPError as e:
                    raise AllocationReadError(f"unable to read response body: {e}") from e
        except httpx.HTTPError as e:
            raise AllocationTransportError(str(e)) from e

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise AllocationDecodeError(f"unable to unmarshal response JSON: {e}") from e

        try:
            envelope = AllocationResponse.from_dict(payload)
        except ModelError as e:
            raise AllocationDecodeError(f"unable to unmarshal response JSON: {e}") from e

        if envelope.warning:
            logger.warning(f"Allocation API warning: {envelope.warning}")

        records = envelope.records()
        logger.debug(f"Fetched {len(records)} allocations from {len(envelope.data)} sets")
        return records
