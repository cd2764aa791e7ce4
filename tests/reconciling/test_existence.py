import pytest

from nexroles._core.actions.reconciling import compute_containment, compute_existence

SAMPLES = [
    set(),
    {'admin'},
    {'dev'},
    {'admin', 'dev'},
    {'admin', 'dev', 'qa'},
    {'nx-anonymous'},
]


@pytest.mark.parametrize('desired, remote, expected', [
    ({'admin', 'dev'}, {'admin', 'dev'}, True),
    ({'admin', 'dev'}, {'dev', 'admin'}, True),
    (set(), set(), True),
    ({'admin'}, {'admin', 'dev'}, False),
    ({'admin', 'dev'}, {'admin'}, False),
    ({'admin', 'qa'}, {'admin', 'dev'}, False),
    (set(), {'admin'}, False),
    ({'admin'}, set(), False),
], ids=[
    'same', 'same-reordered', 'both-empty',
    'remote-has-more', 'remote-has-less', 'same-size-different-members',
    'desired-empty', 'remote-empty',
])
def test_existence_is_strict_equality(desired, remote, expected):
    assert compute_existence(desired, remote) is expected


def test_existence_of_the_same_roles():
    assert compute_existence({'admin', 'dev'}, {'admin', 'dev'}) is True


def test_existence_fails_on_cardinality_mismatch():
    assert compute_existence({'admin'}, {'admin', 'dev'}) is False


@pytest.mark.parametrize('desired', SAMPLES)
def test_existence_of_not_found_is_false(desired):
    assert compute_existence(desired, None) is False


@pytest.mark.parametrize('a', SAMPLES)
@pytest.mark.parametrize('b', SAMPLES)
def test_existence_is_symmetric(a, b):
    assert compute_existence(a, b) == compute_existence(b, a)


def test_existence_accepts_any_collections():
    assert compute_existence(['admin', 'dev'], ('dev', 'admin')) is True
    assert compute_existence(['admin', 'admin', 'dev'], {'dev', 'admin'}) is True


@pytest.mark.parametrize('desired, remote, expected', [
    ({'admin', 'dev'}, {'admin', 'dev'}, True),
    ({'admin'}, {'admin', 'dev'}, True),
    (set(), {'admin'}, True),
    (set(), set(), True),
    ({'admin', 'dev'}, {'admin'}, False),
    ({'qa'}, {'admin', 'dev'}, False),
])
def test_containment_ignores_foreign_members(desired, remote, expected):
    assert compute_containment(desired, remote) is expected


@pytest.mark.parametrize('desired', SAMPLES)
def test_containment_of_not_found_is_false(desired):
    assert compute_containment(desired, None) is False
