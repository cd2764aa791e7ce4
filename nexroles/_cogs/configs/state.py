"""
State storages persist the bindings' states between the runs.

The state is what the reconciliation has written for every binding the last
time: the desired subset of roles and whether the write has completed.
It is needed to know which roles to remove when the declaration changes
or disappears: the remote users do not remember who has added which roles.

The states are stored as raw records, the conversion to/from the typed states
is done in :mod:`nexroles._cogs.structs.states`. The storages can be replaced
by custom ones: e.g. for keeping the state in a database or in a remote store.

The file-based storage keeps all the records in one YAML document, which
is loaded lazily on the first access and written only when flushed.
"""
import abc
import os
import pathlib
import tempfile
from collections.abc import Mapping, MutableMapping
from typing import Any

import yaml
from typing_extensions import TypedDict

STATE_FORMAT_VERSION = 1


class StateError(Exception):
    """ Raised when the persisted state cannot be loaded. """


class StateRecord(TypedDict, total=False):
    roles: list[str]
    applied: bool
    updated: str | None
    firstname: str | None
    lastname: str | None
    email: str | None
    status: str | None
    source: str | None


class StateStorage(metaclass=abc.ABCMeta):
    """
    Base class and an interface for all persistent states.
    """

    @abc.abstractmethod
    def fetch(self, *, userid: str) -> StateRecord | None:
        raise NotImplementedError

    @abc.abstractmethod
    def fetch_all(self) -> Mapping[str, StateRecord]:
        raise NotImplementedError

    @abc.abstractmethod
    def store(self, *, userid: str, record: StateRecord) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def purge(self, *, userid: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass


class MemoryStateStorage(StateStorage):
    """
    In-memory state: lost when the process exits. For tests and embedding.
    """

    def __init__(self, records: Mapping[str, StateRecord] | None = None) -> None:
        super().__init__()
        self._records: MutableMapping[str, StateRecord] = dict(records or {})

    def fetch(self, *, userid: str) -> StateRecord | None:
        return self._records.get(userid)

    def fetch_all(self) -> Mapping[str, StateRecord]:
        return dict(self._records)

    def store(self, *, userid: str, record: StateRecord) -> None:
        self._records[userid] = record

    def purge(self, *, userid: str) -> None:
        self._records.pop(userid, None)


class FileStateStorage(MemoryStateStorage):
    """
    The state in a local YAML file.

    The file is read once on the first access. All the changes are kept in memory
    until :meth:`flush` is called, which writes the whole file atomically
    (via a temporary file in the same directory and a rename).
    """

    def __init__(self, *, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self._path = pathlib.Path(path)
        self._loaded = False
        self._dirty = False

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def fetch(self, *, userid: str) -> StateRecord | None:
        self._load()
        return super().fetch(userid=userid)

    def fetch_all(self) -> Mapping[str, StateRecord]:
        self._load()
        return super().fetch_all()

    def store(self, *, userid: str, record: StateRecord) -> None:
        self._load()
        super().store(userid=userid, record=record)
        self._dirty = True

    def purge(self, *, userid: str) -> None:
        self._load()
        super().purge(userid=userid)
        self._dirty = True

    def flush(self) -> None:
        if not self._dirty:
            return
        content = {
            'version': STATE_FORMAT_VERSION,
            'resources': {userid: dict(record) for userid, record in sorted(self._records.items())},
        }
        dirname = self._path.parent
        dirname.mkdir(parents=True, exist_ok=True)
        fd, tmpname = tempfile.mkstemp(dir=dirname, prefix=f'.{self._path.name}.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                yaml.safe_dump(content, f, default_flow_style=False, sort_keys=True)
            os.replace(tmpname, self._path)
        except BaseException:
            os.unlink(tmpname)
            raise
        self._dirty = False

    def _load(self) -> None:
        if self._loaded:
            return
        try:
            with self._path.open('r', encoding='utf-8') as f:
                content: Any = yaml.safe_load(f)
        except FileNotFoundError:
            content = None
        except yaml.YAMLError as e:
            raise StateError(f"Cannot parse the state file {str(self._path)!r}: {e}") from e

        if content is None:
            resources = {}
        elif not isinstance(content, Mapping):
            raise StateError(f"The state file {str(self._path)!r} is not a mapping.")
        elif content.get('version') != STATE_FORMAT_VERSION:
            raise StateError(f"Unsupported state version in {str(self._path)!r}: "
                             f"{content.get('version')!r}")
        else:
            resources = content.get('resources') or {}
            if not isinstance(resources, Mapping):
                raise StateError(f"The resources in {str(self._path)!r} are not a mapping.")

        for userid, record in resources.items():
            if not isinstance(record, Mapping):
                raise StateError(f"The record of {userid!r} in {str(self._path)!r} is not a mapping.")
            self._records[str(userid)] = StateRecord(**record)
        self._loaded = True
