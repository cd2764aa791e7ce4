import datetime

from nexroles._cogs.configs.state import MemoryStateStorage, StateRecord
from nexroles._cogs.structs.states import ResourceState
from nexroles._cogs.structs.users import User

TS = datetime.datetime(2020, 12, 31, 23, 59, 59, 123456, tzinfo=datetime.timezone.utc)


def test_states_are_converted_for_storage():
    state = ResourceState(userid='jdoe', roles=frozenset({'ops', 'dev'}), applied=True, updated=TS,
                          email='jdoe@example.com')
    record = state.for_storage()
    assert record == {
        'roles': ['dev', 'ops'],
        'applied': True,
        'updated': '2020-12-31T23:59:59.123456+00:00',
        'email': 'jdoe@example.com',
    }


def test_states_are_restored_from_storage():
    record = StateRecord(roles=['dev', 'ops'], applied=True, updated='2020-12-31T23:59:59.123456+00:00',
                         firstname='John')
    state = ResourceState.from_storage('jdoe', record)
    assert state == ResourceState(userid='jdoe', roles=frozenset({'ops', 'dev'}), applied=True,
                                  updated=TS, firstname='John')
    assert state.updated.tzinfo is not None


def test_incomplete_records_are_tolerated():
    state = ResourceState.from_storage('jdoe', StateRecord())
    assert state.roles == set()
    assert state.applied is False
    assert state.updated is None


def test_fresh_states_are_not_applied():
    state = ResourceState.from_scratch(userid='jdoe', roles=['dev', 'dev'])
    assert state.roles == {'dev'}
    assert state.applied is False
    assert state.updated is not None


def test_pending_states_remember_the_roles():
    state = ResourceState(userid='jdoe', roles=frozenset({'dev'}), applied=True, updated=TS)
    pending = state.as_pending({'dev', 'ops'})
    assert pending.roles == {'dev', 'ops'}
    assert pending.applied is False
    assert pending.updated > TS


def test_applied_states():
    state = ResourceState(userid='jdoe', roles=frozenset({'dev'}), applied=False, updated=TS)
    applied = state.as_applied()
    assert applied.applied is True
    assert applied.roles == {'dev'}


def test_user_attributes_are_copied():
    user = User(userid='jdoe', firstname='John', lastname='Doe', email='jdoe@example.com',
                status='disabled', source='LDAP', roles=frozenset({'admin'}))
    state = ResourceState(userid='jdoe', roles=frozenset({'dev'})).with_user(user)
    assert state.roles == {'dev'}  # not the user's roles!
    assert state.firstname == 'John'
    assert state.lastname == 'Doe'
    assert state.email == 'jdoe@example.com'
    assert state.status == 'disabled'
    assert state.source == 'LDAP'


def test_memory_storage_roundtrip():
    storage = MemoryStateStorage()
    state = ResourceState(userid='jdoe', roles=frozenset({'dev'}), applied=True, updated=TS)
    storage.store(userid='jdoe', record=state.for_storage())
    assert ResourceState.from_storage('jdoe', storage.fetch(userid='jdoe')) == state
    storage.purge(userid='jdoe')
    assert storage.fetch(userid='jdoe') is None
    storage.purge(userid='jdoe')  # no errors on absent records
