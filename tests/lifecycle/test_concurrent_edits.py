import pytest

from nexroles._cogs.structs.declarations import UserRoleSpec
from nexroles._cogs.structs.states import ResourceState
from nexroles._core.intents.stores import MemoryUserStore
from nexroles._core.reactor.lifecycle import UserRoleLifecycle


class BusyUserStore(MemoryUserStore):
    """ Another actor adds a new foreign role right before every read. """

    async def get(self, userid):
        user = self.users.get(userid)
        if user is not None:
            self.users[userid] = user.with_roles(user.roles | {f'foreign-{len(self.calls)}'})
        return await super().get(userid)


@pytest.fixture()
def store(users):
    return BusyUserStore(users)


@pytest.fixture()
def lifecycle(store, settings):
    return UserRoleLifecycle(store=store, settings=settings)


async def test_creation_keeps_the_roles_added_before_its_read(lifecycle, store):
    await lifecycle.create(UserRoleSpec.build('jdoe', ['ops']))
    assert store.calls == [('get', 'jdoe'), ('replace', 'jdoe')]
    assert store.users['jdoe'].roles == {'admin', 'dev', 'foreign-0', 'ops'}


async def test_update_keeps_the_roles_added_before_its_read(lifecycle, store):
    state = ResourceState(userid='jdoe', roles=frozenset({'dev'}), applied=True)
    await lifecycle.update(state, UserRoleSpec.build('jdoe', ['ops']))
    assert store.calls == [('get', 'jdoe'), ('replace', 'jdoe')]
    assert store.users['jdoe'].roles == {'admin', 'foreign-0', 'ops'}


async def test_deletion_keeps_the_roles_added_before_its_read(lifecycle, store):
    state = ResourceState(userid='jdoe', roles=frozenset({'dev'}), applied=True)
    await lifecycle.delete(state)
    assert store.calls == [('get', 'jdoe'), ('replace', 'jdoe')]
    assert store.users['jdoe'].roles == {'admin', 'foreign-0'}
