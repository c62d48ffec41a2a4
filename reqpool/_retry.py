'''
classification of transport failures for the execution engine

An attempt either succeeds, is canceled by the caller, fails with a
transient error worth retrying (timeouts, closed or reset connections),
or fails for good.
'''
from __future__ import annotations

import enum

import httpcore
import httpx

from reqpool._errors import RequestCanceled


class Outcome(enum.Enum):
    '''
    How a call that did not raise ended.
    '''
    SUCCESS = 'success'
    CANCELED = 'canceled'


class Verdict(enum.Enum):
    CANCELED = 'canceled'
    TRANSIENT = 'transient'
    FATAL = 'fatal'


TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    ConnectionResetError,
    ConnectionAbortedError,
    BrokenPipeError,
    httpx.TimeoutException,
    httpx.ReadError,
    httpx.WriteError,
    httpx.CloseError,
    httpcore.TimeoutException,
    httpcore.ReadError,
    httpcore.WriteError,
)

PROTOCOL_ERRORS: tuple[type[BaseException], ...] = (
    httpx.RemoteProtocolError,
    httpcore.RemoteProtocolError,
)

# protocol errors that mean the peer went away, not that it sent garbage
_CLOSED_MARKERS = (
    'server disconnected',
    'peer closed connection',
    'connection closed',
)

_CANCEL_MARKERS = ('user canceled', 'user cancelled')


def is_canceled(exc: BaseException) -> bool:
    if isinstance(exc, RequestCanceled):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _CANCEL_MARKERS)


def is_connection_closed(exc: BaseException) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _CLOSED_MARKERS)


def classify(exc: BaseException) -> Verdict:
    '''
    Decide what the engine does with a failed attempt. A protocol error
    is only transient when the server closed the connection; a malformed
    response is fatal.

    Parameters
    ----------
    exc : BaseException

    Returns
    -------
    Verdict
    '''
    if is_canceled(exc):
        return Verdict.CANCELED
    if isinstance(exc, PROTOCOL_ERRORS):
        return Verdict.TRANSIENT if is_connection_closed(exc) else Verdict.FATAL
    if isinstance(exc, TRANSIENT_ERRORS):
        return Verdict.TRANSIENT
    return Verdict.FATAL
