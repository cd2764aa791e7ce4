import asyncio
import dataclasses
import functools
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import aiohttp
import click
import yaml

from nexroles._cogs.clients import auth, errors
from nexroles._cogs.configs import configuration, state
from nexroles._cogs.structs import credentials, declarations, states
from nexroles._core.actions import loggers
from nexroles._core.intents import stores
from nexroles._core.reactor import lifecycle, running

_T = TypeVar('_T')


@dataclasses.dataclass()
class CLIControls:
    """ Controls, which are impossible to pass via CLI: e.g. for tests and embedding. """
    store: stores.UserStore | None = None
    storage: state.StateStorage | None = None
    settings: configuration.ReconcilerSettings | None = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


class OwnershipParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.value for v in configuration.OwnershipMode])

    def convert(self, value: Any, param: Any, ctx: Any) -> configuration.OwnershipMode:
        name: str = super().convert(value, param, ctx)
        return configuration.OwnershipMode(name)


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: bool | None = None,
                log_refkey: str | None = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def settings_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to build the settings from the options in all commands the same way."""
    @click.option('-s', '--state', 'state_path', type=click.Path(dir_okay=False))
    @click.option('--ownership', type=OwnershipParamType(), default=None)
    @click.option('--request-timeout', type=float, default=None)
    @click.option('--connect-timeout', type=float, default=None)
    @click.make_pass_decorator(CLIControls, ensure=True)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(__controls: CLIControls,
                state_path: str | None,
                ownership: configuration.OwnershipMode | None,
                request_timeout: float | None,
                connect_timeout: float | None,
                *args: Any, **kwargs: Any) -> Any:
        settings = __controls.settings if __controls.settings is not None else configuration.ReconcilerSettings()
        if state_path is not None:
            settings.persistence.state_path = state_path
        if ownership is not None:
            settings.ownership.mode = ownership
        if request_timeout is not None:
            settings.networking.request_timeout = request_timeout
        if connect_timeout is not None:
            settings.networking.connect_timeout = connect_timeout
        __controls.settings = settings
        if __controls.storage is None:
            __controls.storage = state.FileStateStorage(path=settings.persistence.state_path)
        return fn(__controls, *args, **kwargs)

    return wrapper


def connection_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to collect the credentials in all commands the same way."""
    @click.option('--server', envvar='NEXUS_URL', type=str)
    @click.option('--username', envvar='NEXUS_USERNAME', type=str)
    @click.option('--password', envvar='NEXUS_PASSWORD', type=str)
    @click.option('--insecure', envvar='NEXUS_INSECURE_SKIP_VERIFY', is_flag=True, default=False)
    @click.option('--ca-path', type=click.Path(exists=True, dir_okay=False))
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(*args: Any,
                server: str | None,
                username: str | None,
                password: str | None,
                insecure: bool,
                ca_path: str | None,
                **kwargs: Any) -> Any:
        info = credentials.ConnectionInfo(
            server=server,
            username=username,
            password=password,
            insecure=insecure,
            ca_path=ca_path,
        ) if server else None
        return fn(*args, connection=info, **kwargs)

    return wrapper


def reporting_errors(fn: Callable[..., _T]) -> Callable[..., _T]:
    """ Show the expected errors as the CLI messages, not as tracebacks. """
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> _T:
        try:
            return fn(*args, **kwargs)
        except (declarations.DeclarationError, state.StateError, credentials.LoginError,
                lifecycle.ResourceNotFoundError) as e:
            raise click.ClickException(str(e)) from e
        except errors.APIError as e:
            raise click.ClickException(f"Nexus API failed with HTTP {e.status}: {e}") from e
        except aiohttp.ClientError as e:
            raise click.ClickException(f"Cannot connect to Nexus: {e}") from e

    return wrapper


def load_manifest(path: str) -> Sequence[declarations.UserRoleSpec]:
    try:
        with open(path, encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise declarations.DeclarationError(f"Cannot parse the manifest {path!r}: {e}") from e
    return declarations.parse_declarations(raw)


def run_with_store(
        controls: CLIControls,
        connection: credentials.ConnectionInfo | None,
        fn: Callable[[lifecycle.UserRoleLifecycle], Awaitable[_T]],
) -> _T:
    """
    Run an async routine with the lifecycle over a store: injected or a real one.
    """
    settings = controls.settings if controls.settings is not None else configuration.ReconcilerSettings()

    async def _run() -> _T:
        if controls.store is not None:
            return await fn(lifecycle.UserRoleLifecycle(store=controls.store, settings=settings))

        info = connection if connection is not None else credentials.login_via_env()
        async with auth.APIContext(info) as context:
            logger = loggers.logger.getChild('api')
            store = stores.ApiUserStore(context=context, settings=settings, logger=logger)
            return await fn(lifecycle.UserRoleLifecycle(store=store, settings=settings))

    return asyncio.run(_run())


@click.version_option(prog_name='nexroles')
@click.group(name='nexroles', context_settings=dict(
    auto_envvar_prefix='NEXROLES',
))
def main() -> None:
    pass


@main.command()
@logging_options
@settings_options
@click.option('-f', '--filename', 'manifest', type=click.Path(exists=True, dir_okay=False), required=True)
@reporting_errors
def plan(__controls: CLIControls, manifest: str) -> None:
    """ Show what would be done, as per the stored state (no remote calls). """
    assert __controls.storage is not None
    specs = load_manifest(manifest)
    actions = running.plan(specs, stored=running.load_states(__controls.storage))
    _echo_actions(actions)


@main.command()
@logging_options
@settings_options
@connection_options
@click.option('-f', '--filename', 'manifest', type=click.Path(exists=True, dir_okay=False), required=True)
@click.option('--refresh/--no-refresh', default=True)
@reporting_errors
def apply(
        __controls: CLIControls,
        connection: credentials.ConnectionInfo | None,
        manifest: str,
        refresh: bool,
) -> None:
    """ Add and remove the declared roles of the users. """
    storage = __controls.storage
    assert storage is not None
    specs = load_manifest(manifest)
    actions = run_with_store(__controls, connection, lambda lc: running.apply(
        specs, lifecycle=lc, storage=storage, refresh=refresh))
    _echo_actions(actions)


@main.command()
@logging_options
@settings_options
@connection_options
@reporting_errors
def destroy(
        __controls: CLIControls,
        connection: credentials.ConnectionInfo | None,
) -> None:
    """ Remove all the roles owned by the stored bindings; keep the others. """
    storage = __controls.storage
    assert storage is not None
    actions = run_with_store(__controls, connection, lambda lc: running.destroy(
        lifecycle=lc, storage=storage))
    _echo_actions(actions)


@main.command()
@logging_options
@settings_options
@connection_options
@click.option('-f', '--filename', 'manifest', type=click.Path(exists=True, dir_okay=False), required=True)
@reporting_errors
def check(
        __controls: CLIControls,
        connection: credentials.ConnectionInfo | None,
        manifest: str,
) -> None:
    """ Check if the declared roles are in place; exit with 1 if not. """
    specs = load_manifest(manifest)
    verdicts = run_with_store(__controls, connection, lambda lc: running.check(specs, lifecycle=lc))
    for userid, exists in verdicts.items():
        click.echo(f"{userid}: {'present' if exists else 'absent'}")
    if not all(verdicts.values()):
        raise click.exceptions.Exit(1)


@main.command(name='import')
@logging_options
@settings_options
@connection_options
@click.option('-r', '--role', 'roles', multiple=True)
@click.argument('userid')
@reporting_errors
def import_(
        __controls: CLIControls,
        connection: credentials.ConnectionInfo | None,
        userid: str,
        roles: Sequence[str],
) -> None:
    """ Adopt the roles of an existing user into the stored state. """
    storage = __controls.storage
    assert storage is not None
    imported = run_with_store(__controls, connection, lambda lc: lc.import_(userid, roles or None))
    storage.store(userid=imported.userid, record=imported.for_storage())
    storage.flush()
    click.echo(f"{imported.userid}: imported {sorted(imported.roles)!r}")


@main.command()
@logging_options
@settings_options
@reporting_errors
def show(__controls: CLIControls) -> None:
    """ Show the stored state of all bindings. """
    assert __controls.storage is not None
    stored = running.load_states(__controls.storage)
    content = {userid: _render_state(current) for userid, current in sorted(stored.items())}
    click.echo(yaml.safe_dump(content, default_flow_style=False, sort_keys=True), nl=False)


def _render_state(current: states.ResourceState) -> dict[str, Any]:
    return {key: val for key, val in current.for_storage().items() if val is not None}


def _echo_actions(actions: Sequence[running.Action]) -> None:
    for action in actions:
        click.echo(str(action))
    counts = {kind: sum(1 for action in actions if action.kind is kind) for kind in running.ActionKind}
    click.echo(', '.join(f"{count} to {kind.value}" for kind, count in counts.items()))
