"""
Per-binding logging: every message refers to the binding being reconciled.

The binding's reference (the user id and the lifecycle hook, if any) is put
into the log records as an extra field. The formatters either prefix
the messages with it (``[jdoe:update] Writing the roles...``) for humans,
or put it into a separate field of the JSON logs for the log parsers.
"""
import copy
import enum
import logging
from collections.abc import MutableMapping
from typing import Any

from typing_extensions import NotRequired, TypedDict

# Luckily, we do not mock these ones in tests, so we can import them into our namespace.
try:
    # python-json-logger>=3.1.0
    from pythonjsonlogger.core import RESERVED_ATTRS as _pjl_RESERVED_ATTRS
    from pythonjsonlogger.json import JsonFormatter as _pjl_JsonFormatter
except ImportError:
    # python-json-logger<3.1.0
    from pythonjsonlogger.jsonlogger import JsonFormatter as _pjl_JsonFormatter  # type: ignore
    from pythonjsonlogger.jsonlogger import RESERVED_ATTRS as _pjl_RESERVED_ATTRS  # type: ignore

from nexroles._cogs.configs import configuration
from nexroles._cogs.helpers import typedefs

logger = logging.getLogger('nexroles.objects')

# A key for the binding references in JSON logs, as seen by the log parsers.
DEFAULT_JSON_REFKEY = 'binding'

# The record attributes that are ours, not the messages' data.
REF_ATTR = 'binding_ref'
OWN_ATTRS = frozenset({REF_ATTR, 'settings'})

# The upper bounds of the levels for every severity; everything above is fatal.
SEVERITIES = [
    (logging.DEBUG, 'debug'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
]


class BindingRef(TypedDict):
    userid: str
    hook: NotRequired[str]  # create, read, update, delete, exists, import


class LogFormat(enum.Enum):
    """ Log formats, as specified on CLI. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = '-json-'  # not used for formatting, only for detection


def render_ref(ref: BindingRef) -> str:
    return f"{ref['userid']}:{ref['hook']}" if 'hook' in ref else ref['userid']


def get_severity(levelno: int) -> str:
    for threshold, severity in SEVERITIES:
        if levelno <= threshold:
            return severity
    return 'fatal'


def _prefixed(record: logging.LogRecord) -> logging.LogRecord:
    ref: BindingRef | None = getattr(record, REF_ATTR, None)
    if ref is None:
        return record
    record = copy.copy(record)  # shallow; the other handlers see the original message.
    record.msg = f"[{render_ref(ref)}] {record.msg}"
    return record


class ObjectTextFormatter(logging.Formatter):
    def __init__(self, fmt: str | None = None, *, prefix: bool = False) -> None:
        super().__init__(fmt)
        self.prefix = prefix

    def format(self, record: logging.LogRecord) -> str:
        return super().format(_prefixed(record) if self.prefix else record)


class ObjectJsonFormatter(_pjl_JsonFormatter):
    def __init__(
            self,
            *args: Any,
            refkey: str | None = None,
            prefix: bool = False,
            **kwargs: Any,
    ) -> None:
        kwargs['reserved_attrs'] = set(kwargs.get('reserved_attrs', _pjl_RESERVED_ATTRS)) | OWN_ATTRS
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self.refkey: str = refkey or DEFAULT_JSON_REFKEY
        self.prefix = prefix

    def format(self, record: logging.LogRecord) -> str:
        return super().format(_prefixed(record) if self.prefix else record)

    def add_fields(
            self,
            log_record: dict[str, object],
            record: logging.LogRecord,
            message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        ref: BindingRef | None = getattr(record, REF_ATTR, None)
        if ref is not None:
            log_record[self.refkey] = dict(ref)
        log_record.setdefault('severity', get_severity(record.levelno))


class ObjectLogger(typedefs.LoggerAdapter):
    """
    A logger/adapter to carry the binding's reference for formatting.

    Constructed per binding & hook. Only the identity of the binding is carried:
    neither the roles nor the user's personal data get into the logs this way.
    """

    def __init__(
            self,
            *,
            userid: str,
            settings: configuration.ReconcilerSettings,
            hook: str | None = None,
    ) -> None:
        ref = BindingRef(userid=userid)
        if hook is not None:
            ref['hook'] = hook
        super().__init__(logger, {REF_ATTR: ref, 'settings': settings})

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        # Keep both the message's and the adapter's extras (the stdlib keeps only the latter).
        kwargs["extra"] = dict(self.extra or {}) | kwargs.get('extra', {})
        return msg, kwargs


class _OwnStreamHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """ Marks the handlers to be replaced on re-configuration, e.g. between CLI invocations. """


def configure(
        debug: bool | None = None,
        verbose: bool | None = None,
        quiet: bool | None = None,
        log_format: LogFormat | str = LogFormat.FULL,
        log_prefix: bool | None = False,
        log_refkey: str | None = None,
) -> None:
    handler = _OwnStreamHandler()
    handler.setFormatter(make_formatter(log_format=log_format, log_prefix=log_prefix,
                                        log_refkey=log_refkey))
    root = logging.getLogger()
    root.handlers[:] = [h for h in root.handlers if not isinstance(h, _OwnStreamHandler)]
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug or verbose else logging.WARNING if quiet else logging.INFO)

    # The HTTP & loop internals are only interesting when debugging nexroles itself.
    for name in ['asyncio', 'aiohttp']:
        lib_logger = logging.getLogger(name)
        lib_logger.propagate = bool(debug)
        if not debug:
            lib_logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: LogFormat | str = LogFormat.FULL,
        log_prefix: bool | None = False,
        log_refkey: str | None = None,
) -> ObjectTextFormatter | ObjectJsonFormatter:
    prefix = log_prefix if log_prefix is not None else log_format is not LogFormat.JSON
    match log_format:
        case LogFormat.JSON:
            return ObjectJsonFormatter(refkey=log_refkey, prefix=prefix)
        case LogFormat():
            return ObjectTextFormatter(log_format.value, prefix=prefix)
        case str():
            return ObjectTextFormatter(log_format, prefix=prefix)
        case _:
            raise ValueError(f"Unsupported log format: {log_format!r}")
