import collections.abc
import urllib.parse

from nexroles._cogs.clients import api, auth, errors
from nexroles._cogs.configs import configuration
from nexroles._cogs.helpers import typedefs
from nexroles._cogs.structs import users

USERS_URL = '/service/rest/v1/security/users'


async def read_user(
        *,
        userid: str,
        context: auth.APIContext,
        settings: configuration.ReconcilerSettings,
        logger: typedefs.Logger,
) -> users.User | None:
    """
    Read one user by its id, or ``None`` if there is no such user.

    Nexus has no "get one user" endpoint: the users are listed with a filter,
    which is a prefix match, so the exact user is picked from the results.
    The absence of the user is a normal case, not an error.
    """
    try:
        raw = await api.get(
            url=USERS_URL,
            params={'userId': userid},
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError:
        return None

    if not isinstance(raw, list):
        raise errors.APIError(f"Unexpected users listing: {type(raw).__name__}", status=200)

    for raw_user in raw:
        if isinstance(raw_user, collections.abc.Mapping) and raw_user.get('userId') == userid:
            return users.User.from_raw(raw_user)
    return None


async def update_user(
        *,
        user: users.User,
        context: auth.APIContext,
        settings: configuration.ReconcilerSettings,
        logger: typedefs.Logger,
) -> None:
    """
    Replace the whole user, the roles included, with the new value.
    """
    quoted = urllib.parse.quote(user.userid, safe='')
    await api.put(
        url=f'{USERS_URL}/{quoted}',
        payload=user.as_raw(),
        context=context,
        settings=settings,
        logger=logger,
    )
