import json
from collections.abc import Mapping
from typing import Any

import aiohttp

from nexroles._cogs.clients import auth, errors
from nexroles._cogs.configs import configuration
from nexroles._cogs.helpers import typedefs


async def request(
        method: str,
        url: str,  # relative to the server root.
        *,
        context: auth.APIContext,
        settings: configuration.ReconcilerSettings,
        params: Mapping[str, str] | None = None,
        payload: object | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Perform a single request, check it for errors, but do not parse it.

    There are no retries: every failure escalates to the caller as is.
    """
    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    what = f"{method.upper()} {url}"
    logger.debug(f"Requesting: {what}")
    response = await context.session.request(
        method=method,
        url=url,
        params=params,
        json=payload,
        headers=headers,
        timeout=timeout,
    )
    try:
        await errors.check_response(response)  # but do not parse it!
    except errors.APIError as e:
        logger.debug(f"Request failed: {what} -> {e!r}")
        raise
    return response


async def get(
        url: str,  # relative to the server root.
        *,
        context: auth.APIContext,
        settings: configuration.ReconcilerSettings,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='get',
        url=url,
        params=params,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    async with response:
        return await response.json()


async def put(
        url: str,  # relative to the server root.
        *,
        context: auth.APIContext,
        settings: configuration.ReconcilerSettings,
        payload: object | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='put',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    async with response:
        # Nexus replies to updates with "204 No Content", but be tolerant to bodies.
        if response.content_length == 0 or response.status == 204:
            return None
        text = await response.text()
        return json.loads(text) if text else None
