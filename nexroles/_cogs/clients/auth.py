import base64
import ssl
import types

import aiohttp

from nexroles._cogs.helpers import versions
from nexroles._cogs.structs import credentials


class APIContext:
    """
    A container for an aiohttp session and the server's base URL.

    The context is constructed explicitly by the caller (e.g. the CLI)
    and passed down to the API-calling functions: there is no global client.
    Closing the context closes the session and all responses made with it.

    We assume that all the requests are made from the same event loop,
    so there is no need to split the sessions for multiple loops.
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    server: str

    def __init__(
            self,
            info: credentials.ConnectionInfo | aiohttp.ClientSession,
            *,
            server: str | None = None,
    ) -> None:
        super().__init__()
        match info:
            case credentials.ConnectionInfo():
                self.session = self.make_aiohttp_session(info)
                self.server = info.server
            case aiohttp.ClientSession():
                if server is None:
                    raise TypeError("The server is required for a user-provided session.")
                self.session = info
                self.server = server
            case _:
                raise TypeError(f"Unsupported credentials type: {info!r}")

        # It is a good practice to self-identify a bit, even with a user-provided session.
        if self.session.headers.get('User-Agent') is None:
            self.session.headers['User-Agent'] = f'nexroles/{versions.version or "unknown"}'

    async def __aenter__(self) -> "APIContext":
        return self

    async def __aexit__(
            self,
            exc_type: type[BaseException] | None,
            exc_val: BaseException | None,
            exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()

    def make_aiohttp_session(self, info: credentials.ConnectionInfo) -> aiohttp.ClientSession:

        # The SSL part (CA verification only; no client certificates for Nexus).
        context = ssl.create_default_context(
            cafile=info.ca_path,
            cadata=decode_to_pem(info.ca_data) if info.ca_data is not None else None,
        )
        if info.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        # The basic auth part.
        auth: aiohttp.BasicAuth | None
        if info.username and info.password:
            auth = aiohttp.BasicAuth(info.username, info.password)
        else:
            auth = None

        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(ssl=context),
            headers={'Accept': 'application/json'},
            auth=auth,
        )

    async def close(self) -> None:
        await self.session.close()


def decode_to_pem(data: str | bytes) -> str:
    match data:
        case str() if data.startswith('-----BEGIN '):
            return data
        case bytes() if data.startswith(b'-----BEGIN '):
            return data.decode('ascii')
        case _:
            return base64.b64decode(data).decode('ascii')
