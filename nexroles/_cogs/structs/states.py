"""
The typed states of the bindings, as converted from/to the storage records.

Note the difference: :class:`UserRoleSpec` is what is *declared* now,
while :class:`ResourceState` is what was *written* the last time.
The difference between the two is what the next reconciliation will apply.
"""
import dataclasses
import datetime
from collections.abc import Iterable
from typing import overload

import iso8601

from nexroles._cogs.configs import state
from nexroles._cogs.structs import users


@dataclasses.dataclass(frozen=True)
class ResourceState:
    userid: str
    roles: frozenset[str] = frozenset()  # the desired subset as last written (or attempted).
    applied: bool = False  # False until the last started hook has finished successfully.
    updated: datetime.datetime | None = None

    # The computed attributes of the user, as last observed. Informational only.
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None
    status: str | None = None
    source: str | None = None

    @classmethod
    def from_scratch(cls, *, userid: str, roles: Iterable[str] = ()) -> "ResourceState":
        return cls(userid=userid, roles=frozenset(roles), applied=False, updated=_now())

    @classmethod
    def from_storage(cls, __userid: str, __d: state.StateRecord) -> "ResourceState":
        return cls(
            userid=__userid,
            roles=frozenset(__d.get('roles') or ()),
            applied=bool(__d.get('applied', False)),
            updated=parse_iso8601(__d.get('updated')),
            firstname=__d.get('firstname'),
            lastname=__d.get('lastname'),
            email=__d.get('email'),
            status=__d.get('status'),
            source=__d.get('source'),
        )

    def for_storage(self) -> state.StateRecord:
        record = state.StateRecord(
            roles=sorted(self.roles),
            applied=bool(self.applied),
            updated=format_iso8601(self.updated),
        )
        for name in ['firstname', 'lastname', 'email', 'status', 'source']:
            value = getattr(self, name)
            if value is not None:
                record[name] = value  # type: ignore[literal-required]
        return record

    def as_pending(self, roles: Iterable[str] | None = None) -> "ResourceState":
        roles = self.roles if roles is None else frozenset(roles)
        return dataclasses.replace(self, roles=roles, applied=False, updated=_now())

    def as_applied(self) -> "ResourceState":
        return dataclasses.replace(self, applied=True, updated=_now())

    def with_roles(self, roles: Iterable[str]) -> "ResourceState":
        return dataclasses.replace(self, roles=frozenset(roles))

    def with_user(self, user: users.User) -> "ResourceState":
        return dataclasses.replace(
            self,
            firstname=user.firstname,
            lastname=user.lastname,
            email=user.email,
            status=user.status,
            source=user.source,
        )


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@overload
def format_iso8601(val: None) -> None: ...


@overload
def format_iso8601(val: datetime.datetime) -> str: ...


def format_iso8601(val: datetime.datetime | None) -> str | None:
    return None if val is None else val.isoformat(timespec='microseconds')


@overload
def parse_iso8601(val: None) -> None: ...


@overload
def parse_iso8601(val: str) -> datetime.datetime: ...


def parse_iso8601(val: str | None) -> datetime.datetime | None:
    return None if val is None else iso8601.parse_date(val)  # always TZ-aware
