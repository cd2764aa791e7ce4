"""
The declared user-role bindings, as provided by the users of the package.

Declarations come untyped from the manifests (YAML/JSON or plain Python dicts),
and are decoded here once into typed immutable specs. Nothing past this point
works with the raw data.

A manifest is either a list of bindings, or a mapping with a ``bindings`` key::

    bindings:
      - userid: jdoe
        roles: [nx-developers, nx-deployers]
      - userid: asmith
        roles: []
"""
import collections.abc
import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from typing import Any


class DeclarationError(Exception):
    """ Raised when the declared bindings are malformed. """


@dataclasses.dataclass(frozen=True)
class UserRoleSpec:
    """
    One declared binding: the roles of a user that this configuration owns.

    The roles are the *desired subset* of the user's roles. Other roles of the same
    user are not affected by this binding. Duplicates collapse; an empty set is valid.
    """
    userid: str
    roles: frozenset[str] = frozenset()

    @classmethod
    def build(cls, userid: str, roles: Iterable[str] = ()) -> "UserRoleSpec":
        return cls(userid=userid, roles=frozenset(roles))


def parse_declaration(raw: object, *, index: int | None = None) -> UserRoleSpec:
    where = f"binding #{index}" if index is not None else "binding"
    if not isinstance(raw, collections.abc.Mapping):
        raise DeclarationError(f"The {where} must be a mapping, got {type(raw).__name__}.")

    unknown = set(raw) - {'userid', 'roles'}
    if unknown:
        raise DeclarationError(f"The {where} has unknown fields: {', '.join(sorted(map(str, unknown)))}.")

    userid = raw.get('userid')
    if not isinstance(userid, str) or not userid.strip():
        raise DeclarationError(f"The {where} must have a non-empty string userid.")

    roles = raw.get('roles', [])
    if roles is None:
        roles = []
    if isinstance(roles, str) or not isinstance(roles, collections.abc.Iterable):
        raise DeclarationError(f"The {where} ({userid}) must have a list of roles.")
    roles = list(roles)
    if not all(isinstance(role, str) and role for role in roles):
        raise DeclarationError(f"The {where} ({userid}) must have only non-empty string roles.")

    return UserRoleSpec.build(userid=userid, roles=roles)


def parse_declarations(raw: Any) -> Sequence[UserRoleSpec]:
    """
    Decode the whole manifest into the typed specs.

    A user can be declared only once per manifest: two bindings of the same user
    would fight for the same roles, so such manifests are rejected.
    """
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        if set(raw) - {'bindings'}:
            raise DeclarationError("The manifest must have only the 'bindings' key.")
        raw = raw.get('bindings') or []
    if isinstance(raw, str) or not isinstance(raw, collections.abc.Iterable):
        raise DeclarationError("The manifest must be a list of bindings.")

    specs: list[UserRoleSpec] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        spec = parse_declaration(item, index=index)
        if spec.userid in seen:
            raise DeclarationError(f"The user {spec.userid!r} is declared more than once.")
        seen.add(spec.userid)
        specs.append(spec)
    return specs
