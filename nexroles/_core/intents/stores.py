"""
Remote stores of the users: where the roles are read from and written to.

The reconciliation depends only on the :class:`UserStore` protocol. The stores
are created by the callers and injected explicitly: there is no global client.

:class:`ApiUserStore` works with a real Nexus server via its REST API.
:class:`MemoryUserStore` keeps the users in memory: for tests, dry runs,
and for embedding into other tools that have their own storage.
"""
from collections.abc import Iterable, MutableMapping
from typing import Protocol

from nexroles._cogs.clients import auth, errors, users
from nexroles._cogs.configs import configuration
from nexroles._cogs.helpers import typedefs
from nexroles._cogs.structs import users as userstructs


class UserStore(Protocol):
    """
    The remote entity store: get a whole user, or replace a whole user.

    ``get()`` returns ``None`` if the user does not exist; all other
    failures are raised. There is no partial-update primitive by design
    of the remote API: ``replace()`` overwrites the whole user.
    """

    async def get(self, userid: str) -> userstructs.User | None: ...

    async def replace(self, userid: str, user: userstructs.User) -> None: ...


class ApiUserStore:
    """
    The user store backed by the Nexus REST API.
    """

    def __init__(
            self,
            *,
            context: auth.APIContext,
            settings: configuration.ReconcilerSettings,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self.context = context
        self.settings = settings
        self.logger = logger

    async def get(self, userid: str) -> userstructs.User | None:
        return await users.read_user(
            userid=userid,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )

    async def replace(self, userid: str, user: userstructs.User) -> None:
        if user.userid != userid:
            raise ValueError(f"Cannot replace the user {userid!r} with a user {user.userid!r}.")
        await users.update_user(
            user=user,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )


class MemoryUserStore:
    """
    The user store that keeps the users in memory.

    Every call is recorded (as ``(method, userid)``), so that the tests
    could assert on the remote interactions, e.g. on the re-reads before writes.
    """

    def __init__(self, users: Iterable[userstructs.User] = ()) -> None:
        super().__init__()
        self.users: MutableMapping[str, userstructs.User] = {user.userid: user for user in users}
        self.calls: list[tuple[str, str]] = []

    async def get(self, userid: str) -> userstructs.User | None:
        self.calls.append(('get', userid))
        return self.users.get(userid)

    async def replace(self, userid: str, user: userstructs.User) -> None:
        self.calls.append(('replace', userid))
        if userid not in self.users:
            raise errors.APINotFoundError(f"User {userid!r} not found.", status=404)
        self.users[userid] = user
