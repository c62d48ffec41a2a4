import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from reqpool import (
    ClientConfig,
    File,
    MemoryCookieJar,
    ObjectPool,
    PoolError,
    Request,
    RequestPool,
    Response,
    WireRequest,
    WireResponse,
)

from .conftest import Recorder


def configure_everything(req: Request) -> None:
    req.post(
        'https://example.com/path',
        headers={'X-Test': '1'},
        params={'q': 'v'},
        files={'f': File(b'data', filename='a.txt')},
    )
    req.host('other.example:8443').basic_auth('u', 'p').timeout(3)
    req.cookie('sid', 'abc').max_redirects(5).retry(2).retry_http_proxy('127.0.0.1:9')
    req.http_proxy('127.0.0.1:8080').with_trace([])
    req.jar(MemoryCookieJar())
    req.multipart_files({'bad\nname': File(b'x')})


def test_reacquired_request_is_fresh():
    with RequestPool() as pool:
        req = pool.acquire_request()
        configure_everything(req)
        assert req.deferred_error is not None
        pool.release_request(req)

        again = pool.acquire_request()
        assert again is req
        assert again.wire == WireRequest()
        assert again.redirect_budget == 0
        assert again.retry_budget == 0
        assert again.retry_config is None
        assert again.trace is None
        assert again.deferred_error is None
        assert again.config == pool.config
        assert isinstance(again.cookie_jar, MemoryCookieJar)
        assert len(again.cookie_jar) == 0
        assert again.released is False


def test_reset_covers_every_slot():
    fresh = Request()
    used = Request()
    configure_everything(used)
    used.reset()

    for slot in Request.__slots__:
        if slot == '_jar':
            assert len(used.cookie_jar) == 0
            continue
        assert getattr(used, slot) == getattr(fresh, slot), slot


def test_reacquired_response_is_fresh():
    with RequestPool() as pool:
        resp = pool.acquire_response()
        resp.wire = WireResponse(200, content=b'<title>x</title>')
        assert resp.title == 'x'
        pool.release_response(resp)

        again = pool.acquire_response()
        assert again is resp
        assert again.wire is None
        assert again.text == ''
        assert again.title == ''


def test_double_release():
    with RequestPool() as pool:
        req, resp = pool.acquire()
        pool.release(req, resp)
        with pytest.raises(PoolError):
            pool.release_request(req)
        with pytest.raises(PoolError):
            pool.release_response(resp)


def test_use_after_release(make_pool):
    recorder = Recorder()
    pool = make_pool(recorder)
    req, resp = pool.acquire()
    req.get('http://example.com/')
    pool.release(req, resp)

    with pytest.raises(PoolError):
        req.do(resp)
    assert recorder.calls == 0


def test_session_releases():
    with RequestPool() as pool:
        with pool.session() as (req, resp):
            req.get('http://example.com/')
        assert req.released and resp.released
        assert pool.idle() == (1, 1)


def test_session_releases_on_error():
    with RequestPool() as pool:
        with pytest.raises(RuntimeError):
            with pool.session() as (req, resp):
                raise RuntimeError('boom')
        assert req.released and resp.released


def test_max_idle():
    pool: ObjectPool[Response] = ObjectPool(Response, max_idle=2)
    objs = [pool.acquire() for _ in range(4)]
    for obj in objs:
        pool.release(obj)
    assert len(pool) == 2


def test_concurrent_double_release():
    pool: ObjectPool[Response] = ObjectPool(Response)
    obj = pool.acquire()
    barrier = threading.Barrier(8)
    errors: list[PoolError] = []

    def release() -> None:
        barrier.wait()
        try:
            pool.release(obj)
        except PoolError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=release) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(errors) == 7
    assert len(pool) == 1


def test_concurrent_acquire_release():
    pool: ObjectPool[Request] = ObjectPool(Request, max_idle=8)
    in_use: set[int] = set()
    lock = threading.Lock()

    def work(n: int) -> None:
        req = pool.acquire()
        with lock:
            assert id(req) not in in_use
            in_use.add(id(req))
        assert 'x-owner' not in req.wire.headers
        req.header('X-Owner', str(n))
        time.sleep(0.001)
        assert req.wire.headers['x-owner'] == str(n)
        with lock:
            in_use.remove(id(req))
        pool.release(req)

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(work, range(200)))

    assert len(pool) <= 8


def test_requests_share_wire_clients(make_pool):
    pool = make_pool(Recorder())
    first, second = pool.acquire_request(), pool.acquire_request()
    assert first.primary_client() is second.primary_client()
    assert len(pool.registry) == 1


def test_close_owned_registry_only():
    config = ClientConfig(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with RequestPool(config) as owner:
        shared = owner.registry
        borrower = RequestPool(config, registry=shared)
        borrower.acquire_request().primary_client()
        borrower.close()
        assert len(shared) == 1
    assert len(shared) == 0
