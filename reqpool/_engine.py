'''
**reqpool._engine**
---------

Drives one logical call: cookie injection, transport attempts with a
bounded retry over transient failures, optional redirect following,
cookie persistence and tracing.
'''
from __future__ import annotations

import dataclasses as dc
import logging
import time
from typing import TYPE_CHECKING

from reqpool._cookies import cookie_target, inject_cookies, persist_cookies
from reqpool._errors import NoAttemptsLeftError, PoolError
from reqpool._retry import Outcome, Verdict, classify

if TYPE_CHECKING:
    from reqpool._request import Request
    from reqpool._response import Response


logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class TraceInfo:
    '''
    A snapshot of one call.

    Attributes
    ----------
    request : str
        the final request as sent, HTTP/1.1 serialized
    response : str
        the final response, empty when the call failed
    duration : float
        seconds spent in the whole call, retries included
    '''
    request: str
    response: str
    duration: float


def _prepare(request: Request, response: Response) -> None:
    if request.released or response.released:
        raise PoolError('Request or Response used after release')

    request.raise_for_config()
    response.reset()

    if 'user-agent' not in request.wire.headers:
        request.user_agent(request.primary_client().config.user_agent)


def _attempt(request: Request, response: Response) -> Outcome:
    attempts = request.retry_budget + 1
    max_redirects = request.redirect_budget
    client = request.primary_client()
    last_exc: Exception | None = None

    for attempt_no in range(attempts):
        if attempt_no == 1:
            client = request.retry_client()
            logger.info(f'Retrying {request.wire.method} {request.url} (proxy={client.config.proxy})')

        try:
            wire_request = client.build(request.wire)
            if max_redirects > 1:
                response.wire = client.do_redirects(wire_request, max_redirects)
            else:
                response.wire = client.do(wire_request)
            return Outcome.SUCCESS

        except Exception as exc:
            verdict = classify(exc)
            if verdict is Verdict.CANCELED:
                logger.debug(f'{request.wire.method} {request.url} canceled: {exc}')
                return Outcome.CANCELED

            if verdict is Verdict.FATAL:
                raise

            logger.debug(f'Attempt {attempt_no + 1}/{attempts} for {request.url} failed: {exc!r}')
            last_exc = exc

    logger.warning(f'No attempts left for {request.wire.method} {request.url}')
    raise NoAttemptsLeftError(attempts, last_exc) from last_exc


def execute(request: Request, response: Response) -> Outcome:
    '''
    Run one logical call and fill `response` in place.

    Parameters
    ----------
    request : Request
    response : Response

    Returns
    -------
    Outcome
        SUCCESS, or CANCELED when the transport reported the caller
        aborted. A canceled call is not retried.

    Raises
    ------
    RequestConfigError
        For a configuration error recorded by the builder.
    NoAttemptsLeftError
        When every attempt failed with a transient error.
    httpx.HTTPError
        Any other transport error, raised on the first occurrence.
    '''
    _prepare(request, response)

    start = time.perf_counter()
    target = cookie_target(request.wire.url)
    if target is not None:
        inject_cookies(request.cookie_jar, target, request.wire)

    try:
        return _attempt(request, response)
    finally:
        if target is not None and response.wire is not None:
            persist_cookies(request.cookie_jar, target, response.wire.headers)

        if request.trace is not None:
            request.trace.append(TraceInfo(
                request=str(request),
                response=str(response),
                duration=time.perf_counter() - start,
            ))
