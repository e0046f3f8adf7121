"""
Shared HTTP plumbing for direct-API tools.
"""

from typing import Any, Dict, Optional

import httpx

from mcp_assistant.chat.messages import ERROR_MESSAGES
from mcp_assistant.core.exceptions import ProviderCallError


async def http_get(
    url: str,
    params: Dict[str, Any],
    timeout: float,
    client: Optional[httpx.AsyncClient] = None,
    service: str = "Data",
) -> httpx.Response:
    """
    Issue a GET request, mapping transport failures to ProviderCallError.

    HTTP error statuses are returned to the caller, which knows how to
    interpret them for its API.
    """
    try:
        if client is not None:
            return await client.get(url, params=params, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as owned_client:
            return await owned_client.get(url, params=params)
    except httpx.TimeoutException as e:
        raise ProviderCallError(
            f"{service} service request timed out. Please try again.",
            kind=ProviderCallError.TIMEOUT,
            raw=str(e) or type(e).__name__,
        )
    except httpx.RequestError as e:
        raise ProviderCallError(
            ERROR_MESSAGES["fetch_error"],
            kind=ProviderCallError.FETCH_ERROR,
            raw=str(e) or type(e).__name__,
        )
