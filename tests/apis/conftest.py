import dataclasses
from typing import Any

import aiohttp.web
import pytest

from nexroles._cogs.clients.auth import APIContext
from nexroles._cogs.clients.users import USERS_URL
from nexroles._cogs.structs.credentials import ConnectionInfo


@dataclasses.dataclass
class FakeNexus:
    """
    The server-side state of a fake Nexus: the users, the requests, the failures.

    The failures are consumed one per request, in the order of injection.
    """
    users: dict[str, dict[str, Any]] = dataclasses.field(default_factory=dict)
    requests: list[aiohttp.web.Request] = dataclasses.field(default_factory=list)
    payloads: list[Any] = dataclasses.field(default_factory=list)
    failures: list[aiohttp.web.Response] = dataclasses.field(default_factory=list)


@pytest.fixture()
def nexus():
    return FakeNexus(users={
        'jdoe': {
            'userId': 'jdoe', 'firstName': 'John', 'lastName': 'Doe',
            'emailAddress': 'jdoe@example.com', 'source': 'default', 'status': 'active',
            'readOnly': False, 'roles': ['admin', 'dev'], 'externalRoles': [],
        },
        'jdoe2': {
            'userId': 'jdoe2', 'firstName': 'Jane', 'lastName': 'Doe',
            'emailAddress': 'jdoe2@example.com', 'source': 'default', 'status': 'active',
            'readOnly': False, 'roles': ['qa'], 'externalRoles': [],
        },
    })


@pytest.fixture()
async def nexus_server(aiohttp_server, nexus):

    async def list_users(request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        nexus.requests.append(request)
        nexus.payloads.append(None)
        if nexus.failures:
            return nexus.failures.pop(0)
        prefix = request.query.get('userId', '')
        return aiohttp.web.json_response([
            user for userid, user in sorted(nexus.users.items()) if userid.startswith(prefix)
        ])

    async def update_user(request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        nexus.requests.append(request)
        payload = await request.json()
        nexus.payloads.append(payload)
        if nexus.failures:
            return nexus.failures.pop(0)
        userid = request.match_info['userid']
        if userid not in nexus.users:
            return aiohttp.web.Response(status=404, text=f"User '{userid}' not found")
        nexus.users[userid] = payload
        return aiohttp.web.Response(status=204)

    app = aiohttp.web.Application()
    app.router.add_get(USERS_URL, list_users)
    app.router.add_put(USERS_URL + '/{userid}', update_user)
    return await aiohttp_server(app)


@pytest.fixture()
def server_url(nexus_server):
    return str(nexus_server.make_url('/'))


@pytest.fixture()
async def context(server_url):
    info = ConnectionInfo(server=server_url, username='admin', password='admin123')
    async with APIContext(info) as context:
        yield context
