"""
Nexus users, as seen in the API, and as used internally.

The raw users are the JSON bodies of the API, with no guarantees on
the presence of the fields. The internal users are the typed immutable
dataclasses with the roles as sets: the order of roles is irrelevant
in Nexus, and the duplicates collapse.

All the non-role fields are carried through unchanged from the reads to
the writes: the user update call replaces the whole user, not the roles only.
"""
import dataclasses
from collections.abc import Iterable

from typing_extensions import TypedDict


class RawUser(TypedDict, total=False):
    userId: str
    firstName: str
    lastName: str
    emailAddress: str
    source: str
    status: str
    readOnly: bool
    roles: list[str]
    externalRoles: list[str]


@dataclasses.dataclass(frozen=True)
class User:
    userid: str
    firstname: str = ''
    lastname: str = ''
    email: str = ''
    status: str = ''
    source: str = ''
    readonly: bool = False
    roles: frozenset[str] = frozenset()
    external_roles: frozenset[str] = frozenset()

    @classmethod
    def from_raw(cls, raw: RawUser) -> "User":
        return cls(
            userid=raw['userId'],
            firstname=raw.get('firstName') or '',
            lastname=raw.get('lastName') or '',
            email=raw.get('emailAddress') or '',
            status=raw.get('status') or '',
            source=raw.get('source') or '',
            readonly=bool(raw.get('readOnly', False)),
            roles=frozenset(raw.get('roles') or ()),
            external_roles=frozenset(raw.get('externalRoles') or ()),
        )

    def as_raw(self) -> RawUser:
        # Sorted for stable payloads: easier to read in the logs and to compare in tests.
        return RawUser(
            userId=self.userid,
            firstName=self.firstname,
            lastName=self.lastname,
            emailAddress=self.email,
            source=self.source,
            status=self.status,
            readOnly=self.readonly,
            roles=sorted(self.roles),
            externalRoles=sorted(self.external_roles),
        )

    def with_roles(self, roles: Iterable[str]) -> "User":
        return dataclasses.replace(self, roles=frozenset(roles))
