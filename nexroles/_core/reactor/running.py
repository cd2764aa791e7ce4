"""
The runner: plans and applies the declared bindings against the stored states.

The runner plays the role of a declarative framework around the lifecycle hooks:
it persists the states between the runs, and decides which hook to call for
which binding. Everything is sequential: one binding at a time, one hook at
a time, with no background activities.

Before a hook starts, the binding's state is stored as not applied, with all
the roles the binding could have written by the end of the hook. If the hook
fails, the state remains not applied, and the next run repeats the whole
read-modify-write cycle from scratch. The errors escalate to the caller as is.
"""
import dataclasses
import enum
import logging
from collections.abc import Iterable, Mapping, MutableMapping, Sequence

from nexroles._cogs.configs import state
from nexroles._cogs.structs import declarations, states
from nexroles._core.reactor import lifecycle

logger = logging.getLogger(__name__)


class ActionKind(str, enum.Enum):
    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'
    NOOP = 'noop'


@dataclasses.dataclass(frozen=True)
class Action:
    kind: ActionKind
    userid: str
    added: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()
    retried: bool = False  # the previous attempt has not completed.

    def __str__(self) -> str:
        suffix = " (retry)" if self.retried else ""
        return (f"{self.kind.value} {self.userid}: "
                f"+{sorted(self.added)!r} -{sorted(self.removed)!r}{suffix}")


def load_states(storage: state.StateStorage) -> MutableMapping[str, states.ResourceState]:
    return {
        userid: states.ResourceState.from_storage(userid, record)
        for userid, record in storage.fetch_all().items()
    }


def plan(
        specs: Iterable[declarations.UserRoleSpec],
        *,
        stored: Mapping[str, states.ResourceState],
) -> Sequence[Action]:
    """
    Decide what to do with every binding, with no remote calls.

    The declared bindings go first (in the order of declaration), the deletions
    of the no longer declared bindings go last (in the order of the user ids).
    """
    actions: list[Action] = []
    declared: set[str] = set()
    for spec in specs:
        declared.add(spec.userid)
        current = stored.get(spec.userid)
        if current is None:
            actions.append(Action(ActionKind.CREATE, spec.userid, added=spec.roles))
        elif not current.applied or current.roles != spec.roles:
            actions.append(Action(
                ActionKind.UPDATE, spec.userid,
                added=spec.roles - current.roles,
                removed=current.roles - spec.roles,
                retried=not current.applied,
            ))
        else:
            actions.append(Action(ActionKind.NOOP, spec.userid))

    for userid in sorted(set(stored) - declared):
        current = stored[userid]
        actions.append(Action(
            ActionKind.DELETE, userid,
            removed=current.roles,
            retried=not current.applied,
        ))
    return actions


async def refresh_states(
        *,
        lifecycle: lifecycle.UserRoleLifecycle,
        storage: state.StateStorage,
) -> MutableMapping[str, states.ResourceState]:
    """
    Re-read all applied bindings; forget those whose users have disappeared.

    The not applied bindings are kept as they are: they are going to be retried.
    """
    refreshed = load_states(storage)
    try:
        for userid, current in list(refreshed.items()):
            if not current.applied:
                continue
            observed = await lifecycle.read(current)
            if observed is None:
                storage.purge(userid=userid)
                del refreshed[userid]
            else:
                storage.store(userid=userid, record=observed.for_storage())
                refreshed[userid] = observed
    finally:
        storage.flush()
    return refreshed


async def apply(
        specs: Sequence[declarations.UserRoleSpec],
        *,
        lifecycle: lifecycle.UserRoleLifecycle,
        storage: state.StateStorage,
        refresh: bool = True,
) -> Sequence[Action]:
    """
    Bring the remote users in line with the declared bindings.
    """
    if refresh:
        current_states = await refresh_states(lifecycle=lifecycle, storage=storage)
    else:
        current_states = load_states(storage)
    actions = plan(specs, stored=current_states)
    specs_by_userid = {spec.userid: spec for spec in specs}
    for action in actions:
        await execute(
            action,
            spec=specs_by_userid.get(action.userid),
            current=current_states.get(action.userid),
            lifecycle=lifecycle,
            storage=storage,
        )
    return actions


async def destroy(
        *,
        lifecycle: lifecycle.UserRoleLifecycle,
        storage: state.StateStorage,
) -> Sequence[Action]:
    """
    Delete all the stored bindings, i.e. remove all the owned roles.
    """
    return await apply([], lifecycle=lifecycle, storage=storage, refresh=False)


async def check(
        specs: Iterable[declarations.UserRoleSpec],
        *,
        lifecycle: lifecycle.UserRoleLifecycle,
) -> Mapping[str, bool]:
    """
    Check if every declared binding is in place remotely (no writes).
    """
    return {
        spec.userid: await lifecycle.exists(states.ResourceState(userid=spec.userid, roles=spec.roles))
        for spec in specs
    }


async def execute(
        action: Action,
        *,
        spec: declarations.UserRoleSpec | None,
        current: states.ResourceState | None,
        lifecycle: lifecycle.UserRoleLifecycle,
        storage: state.StateStorage,
) -> None:
    match action.kind:
        case ActionKind.NOOP:
            return

        case ActionKind.CREATE if spec is not None:
            logger.info(f"Planned: {action}")
            pending = states.ResourceState.from_scratch(userid=spec.userid, roles=spec.roles)
            _persist(storage, pending)
            created = await lifecycle.create(spec)
            _persist(storage, created)

        case ActionKind.UPDATE if spec is not None and current is not None:
            logger.info(f"Planned: {action}")
            pending = current.as_pending(current.roles | spec.roles)
            _persist(storage, pending)
            updated = await lifecycle.update(pending, spec)
            _persist(storage, updated if updated is not None else pending)

        case ActionKind.DELETE if current is not None:
            logger.info(f"Planned: {action}")
            _persist(storage, current.as_pending())
            await lifecycle.delete(current)
            storage.purge(userid=action.userid)
            storage.flush()

        case _:
            raise RuntimeError(f"Inconsistent action: {action!r}")


def _persist(storage: state.StateStorage, new_state: states.ResourceState) -> None:
    storage.store(userid=new_state.userid, record=new_state.for_storage())
    storage.flush()
