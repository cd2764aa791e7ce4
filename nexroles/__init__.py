"""
The main module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the package's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from nexroles._cogs.clients.auth import (
    APIContext,
)
from nexroles._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
)
from nexroles._cogs.configs.configuration import (
    OwnershipMode,
    ReconcilerSettings,
)
from nexroles._cogs.configs.state import (
    StateError,
    StateRecord,
    StateStorage,
    MemoryStateStorage,
    FileStateStorage,
)
from nexroles._cogs.helpers.typedefs import (
    Logger,
)
from nexroles._cogs.helpers.versions import (
    version as __version__,
)
from nexroles._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
    login_via_env,
)
from nexroles._cogs.structs.declarations import (
    DeclarationError,
    UserRoleSpec,
    parse_declarations,
)
from nexroles._cogs.structs.states import (
    ResourceState,
)
from nexroles._cogs.structs.users import (
    User,
)
from nexroles._core.actions.application import (
    apply_desired,
    apply_replacement,
)
from nexroles._core.actions.loggers import (
    LogFormat,
    ObjectLogger,
    configure,
)
from nexroles._core.actions.reconciling import (
    compute_existence,
    compute_containment,
    compute_remainder_after_removal,
    compute_replacement,
    compute_observed,
)
from nexroles._core.intents.stores import (
    UserStore,
    ApiUserStore,
    MemoryUserStore,
)
from nexroles._core.reactor.lifecycle import (
    ResourceNotFoundError,
    UserRoleLifecycle,
)
from nexroles._core.reactor.running import (
    Action,
    ActionKind,
    plan,
    apply,
    destroy,
    check,
)

__all__ = [
    'APIContext',
    'APIError', 'APIClientError', 'APIServerError',
    'APIUnauthorizedError', 'APIForbiddenError', 'APINotFoundError', 'APIConflictError',
    'OwnershipMode', 'ReconcilerSettings',
    'StateError', 'StateRecord', 'StateStorage', 'MemoryStateStorage', 'FileStateStorage',
    'Logger',
    'LoginError', 'ConnectionInfo', 'login_via_env',
    'DeclarationError', 'UserRoleSpec', 'parse_declarations',
    'ResourceState',
    'User',
    'apply_desired', 'apply_replacement',
    'LogFormat', 'ObjectLogger', 'configure',
    'compute_existence', 'compute_containment',
    'compute_remainder_after_removal', 'compute_replacement', 'compute_observed',
    'UserStore', 'ApiUserStore', 'MemoryUserStore',
    'ResourceNotFoundError', 'UserRoleLifecycle',
    'Action', 'ActionKind', 'plan', 'apply', 'destroy', 'check',
]
