import logging
import re

import pytest

from nexroles._cogs.configs.configuration import ReconcilerSettings
from nexroles._cogs.configs.state import MemoryStateStorage
from nexroles._cogs.structs.users import User
from nexroles._core.actions.loggers import ObjectLogger
from nexroles._core.intents.stores import MemoryUserStore
from nexroles._core.reactor.lifecycle import UserRoleLifecycle


@pytest.fixture()
def settings():
    return ReconcilerSettings()


@pytest.fixture()
def logger(settings):
    return ObjectLogger(userid='jdoe', settings=settings)


@pytest.fixture()
def users():
    """ The remote users as they are before the test; overridable in the tests. """
    return [
        User(userid='jdoe', firstname='John', lastname='Doe', email='jdoe@example.com',
             status='active', source='default', roles=frozenset({'admin', 'dev'})),
        User(userid='asmith', firstname='Anna', lastname='Smith', email='asmith@example.com',
             status='active', source='default', roles=frozenset({'qa'})),
    ]


@pytest.fixture()
def store(users):
    return MemoryUserStore(users)


@pytest.fixture()
def storage():
    return MemoryStateStorage()


@pytest.fixture()
def lifecycle(store, settings):
    return UserRoleLifecycle(store=store, settings=settings)


@pytest.fixture(autouse=True)
def _caplog_all_levels(caplog):
    caplog.set_level(0)


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    def assert_logs_fn(patterns=(), prohibited=(), strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn


@pytest.fixture(autouse=True)
def _restore_root_logger():
    logger = logging.getLogger()
    original_handlers = logger.handlers[:]
    original_level = logger.level
    yield
    logger.handlers[:] = original_handlers
    logger.setLevel(original_level)
