'''
Exceptions raised by reqpool itself. Transport failures that are not
retried surface as the underlying httpx exceptions.
'''
from __future__ import annotations


class ReqpoolError(Exception):
    '''
    Base class for every error raised by reqpool.
    '''


class RequestConfigError(ReqpoolError, ValueError):
    '''
    Raised when a request is configured with unusable or conflicting
    options.

    Parent: ReqpoolError, ValueError
    '''


class MultipartEncodeError(RequestConfigError):
    '''
    Raised when a multipart part cannot be encoded. The builder keeps it
    and `Request.do` raises it before anything is sent.

    Parent: RequestConfigError
    '''


class BodyTooLargeError(ReqpoolError):
    '''
    Raised when a response body exceeds the client's `max_body_size`.
    '''

    def __init__(self, limit: int, url: str = '') -> None:
        self.limit = limit
        self.url = url
        super().__init__(
            f'Response body from {url or "<unknown>"} exceeds {limit} bytes'
        )


class NoAttemptsLeftError(ReqpoolError):
    '''
    Raised from the last transport error when every attempt failed
    with a transient error.
    '''

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f'Failed after {attempts} attempts: {last_error}')


class RequestCanceled(ReqpoolError):
    '''
    Raised by a transport to signal that the caller aborted the call.
    The engine reports it as `Outcome.CANCELED` instead of an error.
    '''


class PoolError(ReqpoolError, RuntimeError):
    '''
    Raised when an object is released twice or used after release.

    Parent: ReqpoolError, RuntimeError
    '''
