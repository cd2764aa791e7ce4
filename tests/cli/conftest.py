import functools
import logging

import click.testing
import pytest

from nexroles.cli import CLIControls, main

MANIFEST = """
bindings:
  - userid: jdoe
    roles: [ops]
  - userid: asmith
    roles: [qa, dev]
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ['NEXUS_URL', 'NEXUS_USERNAME', 'NEXUS_PASSWORD', 'NEXUS_INSECURE_SKIP_VERIFY']:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_library_loggers():
    saved = {}
    for name in ['asyncio', 'aiohttp']:
        lib_logger = logging.getLogger(name)
        saved[name] = (lib_logger.propagate, lib_logger.handlers[:])
    yield
    for name, (propagate, handlers) in saved.items():
        lib_logger = logging.getLogger(name)
        lib_logger.propagate = propagate
        lib_logger.handlers[:] = handlers


@pytest.fixture()
def manifest(tmp_path):
    path = tmp_path / 'bindings.yaml'
    path.write_text(MANIFEST, encoding='utf-8')
    return str(path)


@pytest.fixture()
def controls(store, storage, settings):
    return CLIControls(store=store, storage=storage, settings=settings)


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner, controls):
    return functools.partial(runner.invoke, main, obj=controls)
