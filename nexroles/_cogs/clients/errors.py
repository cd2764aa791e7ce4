"""
Nexus API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code in the package.
Hence, we have our own hierarchy of exceptions for Nexus API errors.

Low-level errors, such as the network connectivity issues, SSL/HTTPS issues,
etc, are escalated from the client library as is, since they are related not
to the domain of Nexus API, but rather to the networking and encryption.

The original errors of the client library are chained as the causes of our own
specialised errors -- for better explainability of errors in the stack traces.

Some selected reasons of API errors are made into their own classes,
so that they could be intercepted and handled in other places of the package.
All other reasons are raised as the base error class and are indistinguishable
from each other (except via the exception's fields).

Nexus reports the validation failures as a JSON list of ``{id, message}``
items, and everything else as plain text (or nothing at all). Both are kept
in the errors as the details, the messages are joined for the display.
"""
import collections.abc
import json
from collections.abc import Collection

import aiohttp
from typing_extensions import TypedDict


class RawValidationError(TypedDict):
    id: str
    message: str


class APIError(Exception):

    def __init__(
            self,
            details: Collection[RawValidationError] | str | None,
            *,
            status: int,
    ) -> None:
        message = _render_message(details)
        super().__init__(message or f"HTTP {status}")
        self._status = status
        self._details = details
        self._message = message

    @property
    def status(self) -> int:
        return self._status

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def details(self) -> Collection[RawValidationError] | str | None:
        return self._details


class APIClientError(APIError):
    pass


class APIServerError(APIError):
    pass


class APIUnauthorizedError(APIClientError):
    pass


class APIForbiddenError(APIClientError):
    pass


class APINotFoundError(APIClientError):
    pass


class APIConflictError(APIClientError):
    pass


async def check_response(
        response: aiohttp.ClientResponse,
) -> None:
    """
    Check for specialised Nexus errors, and raise with extended information.
    """
    if response.status >= 400:

        # Read the response's body before it is closed by raise_for_status().
        details: Collection[RawValidationError] | str | None
        try:
            text = await response.text()
        except (UnicodeDecodeError, aiohttp.ClientConnectionError):
            text = ''
        try:
            payload = json.loads(text) if text else None
        except json.JSONDecodeError:
            details = text.strip() or None
        else:
            details = _parse_validation_errors(payload) if payload is not None else None

        cls = (
            APIUnauthorizedError if response.status == 401 else
            APIForbiddenError if response.status == 403 else
            APINotFoundError if response.status == 404 else
            APIConflictError if response.status == 409 else
            APIClientError if 400 <= response.status < 500 else
            APIServerError if 500 <= response.status < 600 else
            APIError
        )

        # Raise the package-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise cls(details, status=response.status) from e


def _parse_validation_errors(payload: object) -> Collection[RawValidationError] | None:
    # Only the known structure is kept: who knows what else can be dumped there.
    if isinstance(payload, collections.abc.Mapping):
        payload = [payload]
    if not isinstance(payload, collections.abc.Sequence) or isinstance(payload, str):
        return None
    return [
        RawValidationError(id=str(item.get('id', '')), message=str(item.get('message', '')))
        for item in payload
        if isinstance(item, collections.abc.Mapping)
    ] or None


def _render_message(details: Collection[RawValidationError] | str | None) -> str | None:
    if details is None:
        return None
    if isinstance(details, str):
        return details
    return '; '.join(
        f"{item['id']}: {item['message']}" if item['id'] else item['message']
        for item in details
    ) or None
