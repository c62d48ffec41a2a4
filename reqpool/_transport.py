'''
The wire engine behind reqpool: an immutable `ClientConfig`, the
`WireClient` that turns it into a configured `httpx.Client`, and the
`ClientRegistry` that shares one `WireClient` between every request
using the same configuration.
'''
from __future__ import annotations

import contextlib
import dataclasses as dc
import http.cookiejar
import logging
import socket
import ssl
import threading
from typing import TYPE_CHECKING, Self

import httpx

from reqpool._errors import BodyTooLargeError
from reqpool._response import WireResponse
from reqpool._user_agents import DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from reqpool._request import WireRequest


logger = logging.getLogger(__name__)


DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024


@dc.dataclass(frozen=True, slots=True)
class ClientConfig:
    '''
    Configuration for one wire client. Instances are frozen and hashable
    so they can key the `ClientRegistry`; derive variants with
    `dataclasses.replace` or `with_proxy`.

    Attributes
    ----------
    verify : bool
        Verify server certificates with a browser-like SSL context.
        Disabled by default.
    keepalive_expiry : float
        Seconds an idle pooled connection is kept open.
    connect_timeout, read_timeout, write_timeout : float
        Client-wide socket deadlines in seconds.
    max_body_size : int
        Largest accepted response body in bytes, 0 disables the check.
    transport_retries : int
        Connection retries performed by the transport itself.
    proxy : str | None
        `http://` or `socks5://` proxy URL.
    max_connections : int
    user_agent : str
        Sent when a request does not set its own User-Agent.
    transport : httpx.BaseTransport | None
        Replaces the network transport entirely (proxy and TLS options
        are then ignored). Mostly useful with `httpx.MockTransport`.
    '''
    verify: bool = False
    keepalive_expiry: float = 1.0
    connect_timeout: float = 5.0
    read_timeout: float = 5.0
    write_timeout: float = 5.0
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    transport_retries: int = 0
    proxy: str | None = None
    max_connections: int = 100
    user_agent: str = DEFAULT_USER_AGENT
    transport: httpx.BaseTransport | None = None

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.connect_timeout,
        )

    def limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_connections,
            keepalive_expiry=self.keepalive_expiry,
        )

    def with_proxy(self, proxy: str | None) -> ClientConfig:
        return dc.replace(self, proxy=proxy)


def http_proxy_url(proxy: str) -> str:
    '''
    Normalize an HTTP proxy address, `host:port` or `http://host:port`.
    '''
    if '://' not in proxy:
        return f'http://{proxy}'
    return proxy


def socks5_proxy_url(proxy: str) -> str:
    '''
    Normalize a SOCKS5 proxy address, `host:port`, `user:pass@host:port`
    or a URL with any scheme.
    '''
    _, sep, rest = proxy.partition('://')
    return f'socks5://{rest if sep else proxy}'


# (level, option), value; options the platform lacks are skipped
_TCP_OPTIONS = (
    (('IPPROTO_TCP', 'TCP_NODELAY'), 1),
    (('SOL_SOCKET', 'SO_KEEPALIVE'), 1),
    (('IPPROTO_TCP', 'TCP_KEEPIDLE'), 60),
    (('IPPROTO_TCP', 'TCP_KEEPINTVL'), 10),
    (('IPPROTO_TCP', 'TCP_KEEPCNT'), 5),
)


def socket_options() -> list[tuple[int, int, int]]:
    '''
    TCP options for new connections: no Nagle delay and keepalive probes
    on idle pooled sockets.
    '''
    return [
        (getattr(socket, level), getattr(socket, option), value)
        for (level, option), value in _TCP_OPTIONS
        if hasattr(socket, option)
    ]


@dc.dataclass(frozen=True, slots=True)
class TLSProfile:
    '''
    What a verifying client offers in its TLS handshake.

    Attributes
    ----------
    minimum_version : ssl.TLSVersion
    ciphers : tuple[str, ...]
        TLS 1.2 suites in OpenSSL naming; TLS 1.3 suites stay at the
        OpenSSL defaults.
    curves : tuple[str, ...]
        key exchange curves, the first one the local OpenSSL knows is used
    alpn : tuple[str, ...]
    '''
    minimum_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2
    ciphers: tuple[str, ...] = (
        'ECDHE-ECDSA-AES128-GCM-SHA256',
        'ECDHE-RSA-AES128-GCM-SHA256',
        'ECDHE-ECDSA-CHACHA20-POLY1305',
        'ECDHE-RSA-CHACHA20-POLY1305',
        'ECDHE-ECDSA-AES256-GCM-SHA384',
        'ECDHE-RSA-AES256-GCM-SHA384',
    )
    curves: tuple[str, ...] = ('X25519', 'prime256v1')
    alpn: tuple[str, ...] = ('http/1.1',)


BROWSER_TLS = TLSProfile()


def verifying_ssl_context(profile: TLSProfile = BROWSER_TLS) -> ssl.SSLContext:
    '''
    An SSL context that checks certificates and hostnames and offers the
    handshake described by `profile`. Used when `ClientConfig.verify` is
    set.

    Parameters
    ----------
    profile : TLSProfile, optional
        by default a recent browser's offer

    Returns
    -------
    ssl.SSLContext
    '''
    ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    ctx.minimum_version = profile.minimum_version
    ctx.options |= ssl.OP_NO_COMPRESSION
    ctx.set_ciphers(':'.join(profile.ciphers))

    with contextlib.suppress(NotImplementedError):
        ctx.set_alpn_protocols(list(profile.alpn))

    for curve in profile.curves:
        try:
            ctx.set_ecdh_curve(curve)
        except (ValueError, ssl.SSLError):
            continue
        break

    return ctx


def build_transport(config: ClientConfig) -> httpx.BaseTransport:
    if config.transport is not None:
        return config.transport

    return httpx.HTTPTransport(
        verify=verifying_ssl_context() if config.verify else False,
        http2=False,
        limits=config.limits(),
        trust_env=False,
        retries=config.transport_retries,
        socket_options=socket_options(),
        proxy=config.proxy,
    )


def _discarding_cookie_jar() -> http.cookiejar.CookieJar:
    # cookies belong to each Request's jar, never to the shared client
    policy = http.cookiejar.DefaultCookiePolicy(allowed_domains=[])
    return http.cookiejar.CookieJar(policy=policy)


class WireClient:
    '''
    One configured `httpx.Client`. A WireClient is safe to share between
    threads; nothing a single request does mutates it.
    '''
    __slots__ = ('config', '_client')

    def __init__(self, config: ClientConfig | None = None) -> None:
        self.config: ClientConfig = config or ClientConfig()
        self._client = httpx.Client(
            transport=build_transport(self.config),
            timeout=self.config.timeout(),
            cookies=_discarding_cookie_jar(),
            follow_redirects=False,
            trust_env=False,
        )

    def build(self, wire: WireRequest) -> httpx.Request:
        '''
        Build the httpx request for one attempt. The per-call timeout and
        the TLS server name of a host override travel as request
        extensions, so the shared client is left untouched.
        '''
        extensions = {}
        if wire.host and wire.url.scheme == 'https':
            extensions['sni_hostname'] = strip_port(wire.host)

        kwargs = {}
        if wire.timeout is not None:
            kwargs['timeout'] = wire.timeout

        return self._client.build_request(
            wire.method,
            wire.url,
            headers=wire.outgoing_headers(),
            content=wire.body or None,
            extensions=extensions,
            **kwargs,
        )

    def do(self, request: httpx.Request) -> WireResponse:
        '''
        Send a request without following redirects.
        '''
        response, _ = self._send(request)
        return response

    def do_redirects(self, request: httpx.Request, max_redirects: int) -> WireResponse:
        '''
        Send a request and follow at most `max_redirects` redirects. The
        request's Cookie header is sent again on every hop.

        Raises
        ------
        httpx.TooManyRedirects
            If the server keeps redirecting past the budget.
        '''
        cookie = request.headers.get('cookie')
        redirects = 0
        while True:
            response, next_request = self._send(request)
            if next_request is None:
                response.redirects = redirects
                return response

            if redirects >= max_redirects:
                raise httpx.TooManyRedirects(
                    f'Exceeded maximum allowed redirects ({max_redirects}).',
                    request=request,
                )

            redirects += 1
            logger.debug(f'Following redirect {redirects}/{max_redirects} to {next_request.url}')
            if cookie and 'cookie' not in next_request.headers:
                # httpx rebuilds Cookie from the client jar, which is always empty
                next_request.headers['Cookie'] = cookie
            request = next_request

    def _send(self, request: httpx.Request) -> tuple[WireResponse, httpx.Request | None]:
        logger.debug(f'Sending request: {request.method} {request.url}')
        response = self._client.send(request, stream=True)
        try:
            content = self._read_body(response)
        finally:
            response.close()

        return WireResponse.from_httpx(response, content), response.next_request

    def _read_body(self, response: httpx.Response) -> bytes:
        limit = self.config.max_body_size
        url = str(response.request.url)

        if response.is_stream_consumed:
            # responses built in memory, e.g. by httpx.MockTransport
            content = response.content
            if limit and len(content) > limit:
                raise BodyTooLargeError(limit, url)
            return content

        chunks: list[bytes] = []
        size = 0
        for chunk in response.iter_raw():
            size += len(chunk)
            if limit and size > limit:
                raise BodyTooLargeError(limit, url)
            chunks.append(chunk)

        return b''.join(chunks)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def strip_port(host: str) -> str:
    '''
    Drop the port from a `host[:port]` value; bracketed IPv6 literals
    keep their address.
    '''
    if host.startswith('['):
        return host[1:].partition(']')[0]
    return host.partition(':')[0]


class ClientRegistry:
    '''
    Thread-safe cache of `WireClient`s keyed by their `ClientConfig`.
    '''
    __slots__ = ('_clients', '_lock')

    def __init__(self) -> None:
        self._clients: dict[ClientConfig, WireClient] = {}
        self._lock = threading.Lock()

    def get(self, config: ClientConfig) -> WireClient:
        with self._lock:
            client = self._clients.get(config)
            if client is None:
                logger.debug(f'Creating wire client (proxy={config.proxy})')
                client = self._clients[config] = WireClient(config)
            return client

    def __len__(self) -> int:
        return len(self._clients)

    def close(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()

        for client in clients:
            client.close()


_default_registry: ClientRegistry | None = None
_default_registry_lock = threading.Lock()


def default_registry() -> ClientRegistry:
    '''
    The registry used by requests created without one. Its clients only
    ever hold immutable configurations.
    '''
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = ClientRegistry()
        return _default_registry
