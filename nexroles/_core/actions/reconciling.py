"""
The set algebra of partially owned collections.

A user's roles are shared by many actors: this package, other configurations,
the admins in the UI. A binding owns only its *desired subset* of the roles;
everything else in the user's roles is the *foreign remainder*, which must
survive every write.

The remote API has no partial add/remove primitives: every write replaces
the whole roles list. So the full replacement is always computed here, locally,
from the freshest remote read: ``(remote - old) | new``.

All functions are pure. The remote collection is ``None`` if the user is not found.
"""
from collections.abc import Collection


def compute_existence(
        desired: Collection[str],
        remote: Collection[str] | None,
) -> bool:
    """
    Check if the remote roles are exactly the desired ones (order-independent).

    This is the existence check for the bindings owning the whole collection.
    """
    if remote is None:
        return False
    desired = frozenset(desired)
    remote = frozenset(remote)
    if len(remote) != len(desired):
        return False
    return all(member in desired for member in remote)


def compute_containment(
        desired: Collection[str],
        remote: Collection[str] | None,
) -> bool:
    """
    Check if all the desired roles are present remotely, foreign ones ignored.

    This is the existence check for the bindings owning a part of the collection.
    """
    if remote is None:
        return False
    return frozenset(desired) <= frozenset(remote)


def compute_remainder_after_removal(
        desired: Collection[str],
        remote: Collection[str],
) -> frozenset[str]:
    """
    Remove the no longer desired roles, keep all the foreign ones.
    """
    return frozenset(remote) - frozenset(desired)


def compute_replacement(
        remote: Collection[str] | None,
        *,
        old: Collection[str] = (),
        new: Collection[str] = (),
) -> frozenset[str]:
    """
    Compute the full roles list to write instead of the remote one.

    The previously owned roles (``old``) are removed, the currently owned ones
    (``new``) are added, the foreign roles are kept as they are. For creation,
    ``old`` is empty; for deletion, ``new`` is empty (i.e. the foreign remainder).
    """
    remainder = compute_remainder_after_removal(old, remote or ())
    return remainder | frozenset(new)


def compute_observed(
        desired: Collection[str],
        remote: Collection[str] | None,
) -> frozenset[str] | None:
    """
    Which roles of the binding are still seen remotely.

    The foreign roles are never adopted, regardless of the ownership mode:
    otherwise, the next update or deletion would remove them.
    """
    if remote is None:
        return None
    return frozenset(desired) & frozenset(remote)
