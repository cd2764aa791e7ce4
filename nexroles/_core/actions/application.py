"""
Writing the computed roles back to the remote store.

The write is a full replacement of the user: the freshest user is fetched
right before the write, and only its roles are replaced; all other fields
are written back as fetched. If the user has disappeared meanwhile,
there is nothing to write to, and it is not an error.

The errors of the store (network, authentication, validation) are never
interpreted or retried here: they escalate to the caller as they are.
"""
from collections.abc import Collection

from nexroles._cogs.helpers import typedefs
from nexroles._cogs.structs import users
from nexroles._core.actions import reconciling
from nexroles._core.intents import stores


async def apply_desired(
        store: stores.UserStore,
        userid: str,
        desired: Collection[str],
        *,
        logger: typedefs.Logger,
) -> bool:
    """
    Replace the user's roles with the desired ones, as a whole.

    The callers must pre-compute the full roles list (the foreign remainder
    plus the owned roles), since whatever is not in ``desired`` is removed.

    Returns ``True`` if written, ``False`` if the user was not found.
    """
    user = await store.get(userid)
    if user is None:
        logger.warning(f"User {userid!r} is not found; the roles are not written.")
        return False

    await _replace_roles(store, user, desired, logger=logger)
    return True


async def apply_replacement(
        store: stores.UserStore,
        userid: str,
        *,
        old: Collection[str] = (),
        new: Collection[str] = (),
        logger: typedefs.Logger,
) -> users.User | None:
    """
    Swap the previously owned roles for the newly owned ones, keep the foreign roles.

    The full replacement is computed from the same read that precedes the write,
    so the foreign roles added by other actors until that moment survive.

    Returns the user as written, or ``None`` if the user was not found.
    """
    user = await store.get(userid)
    if user is None:
        return None

    replacement = reconciling.compute_replacement(user.roles, old=old, new=new)
    return await _replace_roles(store, user, replacement, logger=logger)


async def _replace_roles(
        store: stores.UserStore,
        user: users.User,
        desired: Collection[str],
        *,
        logger: typedefs.Logger,
) -> users.User:
    desired = frozenset(desired)
    added = desired - user.roles
    removed = user.roles - desired
    if not added and not removed:
        logger.debug("Roles are already as desired; writing them anyway.")
    else:
        logger.info(f"Writing the roles: added={sorted(added)!r}, removed={sorted(removed)!r}")

    written = user.with_roles(desired)
    await store.replace(user.userid, written)
    return written
