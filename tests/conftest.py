from collections.abc import Callable, Iterator

import httpx
import pytest

from reqpool import ClientConfig, RequestPool

Handler = Callable[[httpx.Request], httpx.Response]


class Recorder:
    '''
    Mock transport handler recording every request it sees.
    '''

    def __init__(self, handler: Handler | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, text='ok'))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def make_pool() -> Iterator[Callable[..., RequestPool]]:
    pools: list[RequestPool] = []

    def factory(handler: Handler, **options) -> RequestPool:
        config = ClientConfig(transport=httpx.MockTransport(handler), **options)
        pool = RequestPool(config)
        pools.append(pool)
        return pool

    yield factory

    for pool in pools:
        pool.close()
