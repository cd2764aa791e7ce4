import pytest

from nexroles._core.reactor.lifecycle import ResourceNotFoundError


async def test_all_roles_are_adopted_by_default(lifecycle, store):
    state = await lifecycle.import_('jdoe')
    assert state.userid == 'jdoe'
    assert state.roles == {'admin', 'dev'}
    assert state.applied is True
    assert state.email == 'jdoe@example.com'


async def test_only_given_roles_are_adopted(lifecycle):
    state = await lifecycle.import_('jdoe', ['dev'])
    assert state.roles == {'dev'}


async def test_importing_writes_nothing(lifecycle, store):
    await lifecycle.import_('jdoe', ['dev'])
    assert store.calls == [('get', 'jdoe')]


async def test_absent_user_cannot_be_imported(lifecycle):
    with pytest.raises(ResourceNotFoundError):
        await lifecycle.import_('ghost')
