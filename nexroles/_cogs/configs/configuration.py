"""
All configuration flags, options, settings to fine-tune the reconciliation.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

In this package, they are called *"settings"* (plural).
Combined, they form a *"configuration"* (singular).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).
"""
import dataclasses
import enum


class OwnershipMode(str, enum.Enum):
    """
    How much of a user's roles list a single binding is assumed to own.
    """

    SHARED = 'shared'
    """
    A binding owns only the roles it declares. Other roles of the same user
    belong to other actors and are neither removed nor compared.
    """

    EXCLUSIVE = 'exclusive'
    """
    A binding expects to be the only source of the user's roles. The binding
    exists only if the remote roles are exactly the declared ones. The other
    roles are reported, but never removed.
    """


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: float | None = 60
    """
    A timeout for a whole API request (including reading the response),
    in seconds. ``None`` disables the timeout.
    """

    connect_timeout: float | None = 10
    """
    A timeout for establishing a connection to the server, in seconds.
    ``None`` disables the timeout.
    """


@dataclasses.dataclass
class OwnershipSettings:

    mode: OwnershipMode = OwnershipMode.SHARED
    """
    Which semantics the existence check uses; see :class:`OwnershipMode`.

    Creation, updates and deletion always touch the declared roles only,
    regardless of this setting, and so do the refreshes of the bindings:
    the foreign roles are never adopted. The mode affects the existence checks only.
    """


@dataclasses.dataclass
class PersistenceSettings:

    state_path: str = 'nexroles.state.yaml'
    """
    Where the bindings' states are persisted between runs (for the CLI).
    Embedded usage can provide any other :class:`StateStorage` explicitly.
    """


@dataclasses.dataclass
class ReconcilerSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    ownership: OwnershipSettings = dataclasses.field(default_factory=OwnershipSettings)
    persistence: PersistenceSettings = dataclasses.field(default_factory=PersistenceSettings)
