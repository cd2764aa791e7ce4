"""
The lifecycle hooks of a user-role binding: create, read, update, delete, exists.

A binding owns only its desired subset of a user's roles. Every mutating hook
re-reads the user right before computing the full replacement of the roles,
never relying on the cached or stored remote state: other actors can change
the same user at any time. This narrows, but does not eliminate, the races:
the remote API has no compare-and-swap or partial updates.

A user not found remotely is not an error: it means the binding is absent.
All other errors of the store escalate as they are.

The hooks do not persist anything: they return the new states, and
the caller (usually the runner) stores them.
"""
from collections.abc import Iterable

from nexroles._cogs.configs import configuration
from nexroles._cogs.structs import declarations, states
from nexroles._core.actions import application, loggers, reconciling
from nexroles._core.intents import stores


class ResourceNotFoundError(Exception):
    """ Raised when an absent user is being imported. """


class UserRoleLifecycle:
    """
    The hooks of the bindings, bound to a specific store and settings.
    """

    def __init__(
            self,
            *,
            store: stores.UserStore,
            settings: configuration.ReconcilerSettings | None = None,
    ) -> None:
        super().__init__()
        self.store = store
        self.settings = settings if settings is not None else configuration.ReconcilerSettings()

    @property
    def exclusive(self) -> bool:
        return self.settings.ownership.mode == configuration.OwnershipMode.EXCLUSIVE

    def make_logger(self, userid: str, hook: str | None = None) -> loggers.ObjectLogger:
        return loggers.ObjectLogger(userid=userid, settings=self.settings, hook=hook)

    async def create(
            self,
            spec: declarations.UserRoleSpec,
    ) -> states.ResourceState:
        """
        Add the declared roles to the user's current roles.

        If the user does not exist, nothing is written, and the returned state
        remains not applied -- so that the creation is retried the next time.
        """
        logger = self.make_logger(spec.userid, hook='create')
        logger.debug("Creating the binding.")
        state = states.ResourceState.from_scratch(userid=spec.userid, roles=spec.roles)

        written = await application.apply_replacement(
            self.store, spec.userid, new=spec.roles, logger=logger)
        if written is None:
            logger.warning("User is not found; the binding is not created.")
            return state

        logger.info(f"Binding is created with roles: {sorted(spec.roles)!r}")
        return state.with_user(written).as_applied()

    async def read(
            self,
            state: states.ResourceState,
    ) -> states.ResourceState | None:
        """
        Refresh the binding from the remote user, or ``None`` if it is absent.

        The observed roles replace the stored ones: only those of the stored
        roles which are still present. The foreign roles are not adopted even
        in the exclusive mode, where they only fail the existence checks.
        """
        logger = self.make_logger(state.userid, hook='read')
        logger.debug("Reading the binding.")
        user = await self.store.get(state.userid)
        if user is None:
            logger.info("User is not found; the binding is considered absent.")
            return None

        observed = reconciling.compute_observed(state.roles, user.roles)
        if observed is not None and observed != state.roles:
            gone = sorted(state.roles - observed)
            logger.info(f"Roles have drifted: missing={gone!r}")
        foreign = user.roles - state.roles
        if self.exclusive and foreign:
            logger.info(f"Foreign roles break the exclusive ownership: {sorted(foreign)!r}")
        return state.with_roles(observed or ()).with_user(user)

    async def update(
            self,
            state: states.ResourceState,
            spec: declarations.UserRoleSpec,
    ) -> states.ResourceState | None:
        """
        Replace the previously owned roles with the newly declared ones.

        Nothing is written if the roles are not changed and the previous
        write has completed; the binding is only refreshed in that case.
        Returns ``None`` if the user is absent.
        """
        if spec.userid != state.userid:
            raise ValueError(f"Cannot update the binding of {state.userid!r} "
                             f"with a declaration of {spec.userid!r}.")

        if spec.roles == state.roles and state.applied:
            return await self.read(state)

        logger = self.make_logger(spec.userid, hook='update')
        logger.debug("Updating the binding.")
        written = await application.apply_replacement(
            self.store, spec.userid, old=state.roles, new=spec.roles, logger=logger)
        if written is None:
            logger.warning("User is not found; the binding is not updated.")
            return None

        logger.info(f"Binding is updated with roles: {sorted(spec.roles)!r}")
        return state.with_roles(spec.roles).with_user(written).as_applied()

    async def delete(
            self,
            state: states.ResourceState,
    ) -> None:
        """
        Remove the owned roles from the user, keep the foreign ones.
        """
        logger = self.make_logger(state.userid, hook='delete')
        logger.debug("Deleting the binding.")
        written = await application.apply_replacement(
            self.store, state.userid, old=state.roles, logger=logger)
        if written is None:
            logger.info("User is not found; the binding is already absent.")
            return

        logger.info(f"Binding is deleted; remaining roles: {sorted(written.roles)!r}")

    async def exists(
            self,
            state: states.ResourceState,
    ) -> bool:
        """
        Check if the binding is in place remotely.

        ``False`` means that the user is absent or its roles do not match.
        Failures to check are raised, never reported as ``False``.
        """
        logger = self.make_logger(state.userid, hook='exists')
        logger.debug("Checking the binding.")
        user = await self.store.get(state.userid)
        remote = None if user is None else user.roles
        if self.exclusive:
            return reconciling.compute_existence(state.roles, remote)
        else:
            return reconciling.compute_containment(state.roles, remote)

    async def import_(
            self,
            userid: str,
            roles: Iterable[str] | None = None,
    ) -> states.ResourceState:
        """
        Adopt the roles of an existing user: the given ones, or all of them.

        Nothing is written remotely. The adopted roles are owned from now on:
        they will be removed when the binding is deleted.
        """
        logger = self.make_logger(userid, hook='import')
        logger.debug("Importing the binding.")
        user = await self.store.get(userid)
        if user is None:
            raise ResourceNotFoundError(f"User {userid!r} is not found; nothing to import.")

        owned = user.roles if roles is None else frozenset(roles)
        logger.info(f"Binding is imported with roles: {sorted(owned)!r}")
        return states.ResourceState.from_scratch(userid=userid, roles=owned).with_user(user).as_applied()
