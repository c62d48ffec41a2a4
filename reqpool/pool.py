'''
**reqpool.pool**
---------

Recycling of Request and Response objects. Released objects are reset
before they go back on the free list, so an acquired object never carries
state from its previous user.

    with RequestPool() as pool:
        with pool.session() as (req, resp):
            req.get('https://example.com').do(resp)
            print(resp.title)
'''
from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, Protocol, Self, TypeVar

from reqpool._errors import PoolError
from reqpool._request import Request
from reqpool._response import Response
from reqpool._transport import ClientConfig, ClientRegistry, default_registry

logger = logging.getLogger(__name__)


class Poolable(Protocol):
    _released: bool

    def reset(self) -> None:
        ...


T = TypeVar('T', bound=Poolable)


class ObjectPool(Generic[T]):
    '''
    A thread-safe free list. At most `max_idle` released objects are kept,
    the rest are left to the garbage collector.
    '''
    __slots__ = ('_factory', '_free', '_lock', '_max_idle')

    def __init__(self, factory: Callable[[], T], *, max_idle: int = 256) -> None:
        self._factory = factory
        self._free: deque[T] = deque()
        self._lock = threading.Lock()
        self._max_idle = max_idle

    def acquire(self) -> T:
        with self._lock:
            obj = self._free.pop() if self._free else None

        if obj is None:
            obj = self._factory()
        obj._released = False
        return obj

    def release(self, obj: T) -> None:
        '''
        Reset `obj` and put it back on the free list.

        Raises
        ------
        PoolError
            If `obj` was already released.
        '''
        with self._lock:
            if obj._released:
                raise PoolError(f'{obj!r} was already released')
            obj._released = True

        obj.reset()
        with self._lock:
            if len(self._free) < self._max_idle:
                self._free.append(obj)

    def __len__(self) -> int:
        return len(self._free)


class RequestPool:
    '''
    Hands out Request/Response pairs bound to one client configuration and
    owns the wire clients they use.

    Parameters
    ----------
    config : ClientConfig | None, optional
        configuration every acquired Request starts from
    registry : ClientRegistry | None, optional
        shared wire clients, a private registry closed with the pool is
        created when omitted
    max_idle : int, optional
        idle objects kept per type, by default 256
    '''
    __slots__ = ('config', '_registry', '_owns_registry', '_requests', '_responses')

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        registry: ClientRegistry | None = None,
        max_idle: int = 256,
    ) -> None:
        self.config: ClientConfig = config or ClientConfig()
        self._owns_registry = registry is None
        self._registry: ClientRegistry = registry or ClientRegistry()
        self._requests: ObjectPool[Request] = ObjectPool(
            lambda: Request(self.config, self._registry), max_idle=max_idle
        )
        self._responses: ObjectPool[Response] = ObjectPool(Response, max_idle=max_idle)

    @property
    def registry(self) -> ClientRegistry:
        return self._registry

    def acquire_request(self) -> Request:
        return self._requests.acquire()

    def acquire_response(self) -> Response:
        return self._responses.acquire()

    def acquire(self) -> tuple[Request, Response]:
        return self.acquire_request(), self.acquire_response()

    def release_request(self, request: Request) -> None:
        self._requests.release(request)

    def release_response(self, response: Response) -> None:
        self._responses.release(response)

    def release(self, request: Request, response: Response) -> None:
        self.release_request(request)
        self.release_response(response)

    @contextmanager
    def session(self) -> Iterator[tuple[Request, Response]]:
        '''
        A Request/Response pair released when the block exits.
        '''
        request, response = self.acquire()
        try:
            yield request, response
        finally:
            self.release(request, response)

    def idle(self) -> tuple[int, int]:
        return len(self._requests), len(self._responses)

    def close(self) -> None:
        if self._owns_registry:
            self._registry.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args) -> None:
        self.close()


_default_pool: RequestPool | None = None
_default_pool_lock = threading.Lock()


def default_pool() -> RequestPool:
    '''
    The pool behind the module level helpers, using the default client
    configuration and the default client registry.
    '''
    global _default_pool
    with _default_pool_lock:
        if _default_pool is None:
            _default_pool = RequestPool(registry=default_registry())
        return _default_pool


def acquire_request() -> Request:
    return default_pool().acquire_request()


def acquire_response() -> Response:
    return default_pool().acquire_response()


def acquire() -> tuple[Request, Response]:
    return default_pool().acquire()


def release_request(request: Request) -> None:
    default_pool().release_request(request)


def release_response(response: Response) -> None:
    default_pool().release_response(response)


def release(request: Request, response: Response) -> None:
    default_pool().release(request, response)
