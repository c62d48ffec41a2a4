'''
**reqpool._request**
---------

The request builder. Every setter mutates the request in place and
returns it so calls can be chained:

    req.post(url, data={'q': 'x'}).timeout(3).retry(2).do(resp)
'''
from __future__ import annotations

import base64
import dataclasses as dc
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Self

import h11
import httpx

from reqpool._cookies import CookieStore, MemoryCookieJar
from reqpool._engine import TraceInfo, execute
from reqpool._errors import MultipartEncodeError, RequestConfigError
from reqpool._multipart import encode_multipart
from reqpool._transport import (
    ClientConfig,
    ClientRegistry,
    WireClient,
    default_registry,
    http_proxy_url,
    socks5_proxy_url,
)
from reqpool._types import (
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_OCTET_STREAM,
    CONTENT_TYPE_XML,
    METHOD_DELETE,
    METHOD_GET,
    METHOD_HEAD,
    METHOD_MOVE,
    METHOD_OPTIONS,
    METHOD_PATCH,
    METHOD_POST,
    METHOD_PUT,
    Data,
    Files,
    Header,
    HttpMethod,
    Params,
)
from reqpool._user_agents import Browsers, Devices, get_random_user_agent, get_user_agent

if TYPE_CHECKING:
    from reqpool._response import Response
    from reqpool._retry import Outcome


logger = logging.getLogger(__name__)


def parse_cookie_header(value: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for item in value.split(';'):
        name, sep, val = item.strip().partition('=')
        if name and sep:
            pairs[name] = val
    return pairs


def infer_content_type(body: bytes) -> str | None:
    '''
    Guess the content type of a raw body from its first characters.

    Parameters
    ----------
    body : bytes

    Returns
    -------
    str | None
        None for an empty body.
    '''
    if body.startswith((b'{', b'[')):
        return CONTENT_TYPE_JSON
    if body.startswith(b'<'):
        return CONTENT_TYPE_XML
    if b'=' in body or b'%' in body:
        return CONTENT_TYPE_FORM
    if body:
        return CONTENT_TYPE_OCTET_STREAM
    return None


@dc.dataclass(slots=True)
class WireRequest:
    '''
    The request as it will be put on the wire.
    '''
    method: str = METHOD_GET
    url: httpx.URL = dc.field(default_factory=httpx.URL)
    headers: httpx.Headers = dc.field(default_factory=httpx.Headers)
    body: bytes = b''
    cookies: dict[str, str] = dc.field(default_factory=dict)
    host: str = ''
    timeout: float | None = None

    def outgoing_headers(self) -> httpx.Headers:
        '''
        The headers with the request cookies merged into any Cookie header
        already set.
        '''
        headers = self.headers.copy()
        if self.cookies:
            pairs = parse_cookie_header(headers.get('cookie', ''))
            pairs.update(self.cookies)
            headers['Cookie'] = '; '.join(f'{name}={value}' for name, value in pairs.items())
        return headers

    def to_raw(self) -> str:
        headers = self.outgoing_headers()
        lines = [f'{self.method} {self.url.raw_path.decode("ascii")} HTTP/1.1']

        if 'host' not in headers and self.url.netloc:
            lines.append(f'Host: {self.url.netloc.decode("ascii")}')
        lines.extend(
            f'{name.decode("latin-1")}: {value.decode("latin-1")}'
            for name, value in headers.raw
        )
        if self.body and 'content-length' not in headers:
            lines.append(f'Content-Length: {len(self.body)}')

        return '\r\n'.join(lines) + '\r\n\r\n' + self.body.decode('utf-8', errors='replace')


class Request:
    '''
    A poolable, fluently configured HTTP request.

    A Request belongs to one caller between acquire and release and must
    not be shared across threads. The wire clients it resolves to are
    shared and never mutated by it.
    '''
    __slots__ = (
        'wire',
        '_trace',
        '_max_redirects',
        '_max_retry',
        '_config',
        '_default_config',
        '_retry_config',
        '_client',
        '_jar',
        '_registry',
        '_error',
        '_released',
    )

    def __init__(
        self,
        config: ClientConfig | None = None,
        registry: ClientRegistry | None = None,
    ) -> None:
        self._default_config: ClientConfig = config or ClientConfig()
        self._registry: ClientRegistry = registry or default_registry()
        self._released: bool = False
        self.reset()

    def reset(self) -> None:
        '''
        Return every setting to its default. Wire state and the cookie jar
        are replaced by fresh objects.
        '''
        self.wire = WireRequest()
        self._trace: list[TraceInfo] | None = None
        self._max_redirects: int = 0
        self._max_retry: int = 0
        self._config: ClientConfig = self._default_config
        self._retry_config: ClientConfig | None = None
        self._client: WireClient | None = None
        self._jar: CookieStore = MemoryCookieJar()
        self._error: Exception | None = None

    @property
    def redirect_budget(self) -> int:
        return self._max_redirects

    @property
    def retry_budget(self) -> int:
        return self._max_retry

    @property
    def trace(self) -> list[TraceInfo] | None:
        return self._trace

    @property
    def cookie_jar(self) -> CookieStore:
        return self._jar

    @property
    def url(self) -> str:
        return str(self.wire.url)

    @property
    def config(self) -> ClientConfig:
        return self._client.config if self._client else self._config

    @property
    def retry_config(self) -> ClientConfig | None:
        return self._retry_config

    @property
    def deferred_error(self) -> Exception | None:
        return self._error

    @property
    def released(self) -> bool:
        return self._released

    def primary_client(self) -> WireClient:
        return self._client or self._registry.get(self._config)

    def retry_client(self) -> WireClient:
        if self._retry_config is None:
            return self.primary_client()
        return self._registry.get(self._retry_config)

    def raise_for_config(self) -> None:
        if self._error is not None:
            raise self._error

    def method(self, method: HttpMethod | str) -> Self:
        self.wire.method = method
        return self

    def uri(self, url: str | httpx.URL) -> Self:
        try:
            self.wire.url = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise RequestConfigError(f'Invalid URL {url!r}: {exc}') from exc
        return self

    def header(self, name: str, value: str) -> Self:
        self.wire.headers[name] = value
        return self

    def headers(self, headers: Header) -> Self:
        for name, value in headers.items():
            self.wire.headers[name] = value
        return self

    def user_agent(self, user_agent: str) -> Self:
        return self.header('User-Agent', user_agent)

    def random_user_agent(self) -> Self:
        return self.user_agent(get_random_user_agent())

    def browser_user_agent(self, browser: Browsers = 'chrome', device: Devices = 'windows') -> Self:
        return self.user_agent(get_user_agent(browser, device))

    def content_type(self, content_type: str) -> Self:
        return self.header('Content-Type', content_type)

    def params(self, params: Params) -> Self:
        '''
        Replace the query string with `params`.
        '''
        self.wire.url = self.wire.url.copy_with(params=dict(params))
        return self

    def _set_body(self, body: bytes) -> None:
        # a new body supersedes a multipart body that failed to encode
        self.reset_body()
        self.wire.body = body

    def data(self, data: Data) -> Self:
        '''
        Replace the body with `data` as a urlencoded form.
        '''
        self.content_type(CONTENT_TYPE_FORM)
        self._set_body(str(httpx.QueryParams(dict(data))).encode('ascii'))
        return self

    def body_raw(self, body: str | bytes) -> Self:
        '''
        Set the body as is. The content type is guessed from the payload:
        JSON for `{` or `[`, XML for `<`, a form when it contains `=` or
        `%`, octet-stream otherwise. An empty body leaves the content type
        alone.
        '''
        if isinstance(body, str):
            body = body.encode('utf-8')
        self._set_body(bytes(body))
        if content_type := infer_content_type(self.wire.body):
            self.content_type(content_type)
        return self

    def multipart_files(self, files: Files) -> Self:
        '''
        Set a multipart/form-data body. An encoding failure is kept and
        raised by `do`. A body set later replaces a kept failure.
        '''
        try:
            multipart = encode_multipart(files)
        except MultipartEncodeError as exc:
            logger.warning(f'Multipart body for {self.url} not built: {exc}')
            self._error = exc
            return self

        self._set_body(multipart.body)
        return self.content_type(multipart.content_type)

    def host(self, host: str) -> Self:
        '''
        Override the Host header. For https targets the TLS server name
        follows the override, without its port.
        '''
        if host:
            self.wire.host = host
            self.wire.headers['Host'] = host
        return self

    def basic_auth(self, username: str, password: str) -> Self:
        token = base64.b64encode(f'{username}:{password}'.encode('utf-8')).decode('ascii')
        return self.header('Authorization', f'Basic {token}')

    def timeout(self, timeout: float | timedelta | None) -> Self:
        '''
        Deadline for this call only, in seconds. The client-wide timeouts
        are not changed.
        '''
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        self.wire.timeout = timeout
        return self

    def cookie(self, name: str, value: str) -> Self:
        self.wire.cookies[name] = value
        return self

    def jar(self, store: CookieStore) -> Self:
        self._jar = store
        return self

    def max_redirects(self, count: int) -> Self:
        '''
        Follow up to `count` redirects. Values below 2 disable following.
        '''
        self._max_redirects = count
        return self

    def retry(self, count: int) -> Self:
        '''
        Allow `count` more attempts after a transient failure. Retries go
        through their own client, direct unless a retry proxy is set.
        '''
        if count < 0:
            raise RequestConfigError(f'Retry count must not be negative, got {count}')
        self._max_retry = count
        self._retry_config = self.config.with_proxy(None)
        return self

    def _set_proxy(self, proxy: str) -> Self:
        self._config = self.config.with_proxy(proxy)
        self._client = None
        return self

    def http_proxy(self, proxy: str) -> Self:
        return self._set_proxy(http_proxy_url(proxy))

    def socks5_proxy(self, proxy: str) -> Self:
        return self._set_proxy(socks5_proxy_url(proxy))

    def _set_retry_proxy(self, proxy: str) -> Self:
        if self._retry_config is None:
            raise RequestConfigError('Call retry() before configuring a retry proxy')
        self._retry_config = self._retry_config.with_proxy(proxy)
        return self

    def retry_http_proxy(self, proxy: str) -> Self:
        return self._set_retry_proxy(http_proxy_url(proxy))

    def retry_socks5_proxy(self, proxy: str) -> Self:
        return self._set_retry_proxy(socks5_proxy_url(proxy))

    def client(self, client: WireClient | None) -> Self:
        if client is not None:
            self._client = client
        return self

    def with_trace(self, trace: list[TraceInfo]) -> Self:
        self._trace = trace
        return self

    def clear_trace(self) -> Self:
        if self._trace is not None:
            self._trace.clear()
        return self

    def reset_body(self) -> Self:
        self.wire.body = b''
        if isinstance(self._error, MultipartEncodeError):
            self._error = None
        return self

    def reset_params(self) -> Self:
        self.wire.url = self.wire.url.copy_with(params={})
        return self

    def reset_headers(self) -> Self:
        self.wire.headers = httpx.Headers()
        self.wire.cookies = {}
        self.wire.host = ''
        return self

    def from_raw(self, raw: str | bytes) -> Self:
        '''
        Load method, URL, headers and body from a raw HTTP/1.1 request.
        A relative request target is resolved against its Host header.

        Raises
        ------
        RequestConfigError
            If `raw` is not a complete, valid request.
        '''
        if isinstance(raw, str):
            raw = raw.encode('utf-8')

        conn = h11.Connection(h11.SERVER)
        conn.receive_data(raw)
        conn.receive_data(b'')

        head: h11.Request | None = None
        body = bytearray()
        try:
            while True:
                event = conn.next_event()
                if isinstance(event, h11.Request):
                    head = event
                elif isinstance(event, h11.Data):
                    body += event.data
                elif isinstance(event, (h11.EndOfMessage, h11.ConnectionClosed)):
                    break
                else:
                    raise RequestConfigError('Incomplete raw request')
        except h11.RemoteProtocolError as exc:
            raise RequestConfigError(f'Invalid raw request: {exc}') from exc

        if head is None:
            raise RequestConfigError('Raw request has no request line')

        headers = httpx.Headers(list(head.headers.raw_items()))
        target = head.target.decode('ascii')
        if not target.startswith(('http://', 'https://')):
            target = f'http://{headers.get("host", "")}{target}'

        self.wire = WireRequest(
            method=head.method.decode('ascii'),
            headers=headers,
            body=bytes(body),
        )
        return self.uri(target)

    def _prepare(
        self,
        method: str,
        url: str | httpx.URL,
        *,
        body: str | bytes | None,
        headers: Header | None,
        params: Params | None,
        data: Data | None,
        files: Files | None,
    ) -> Self:
        given = [
            name for name, value in (('body', body), ('data', data), ('files', files))
            if value is not None
        ]
        if len(given) > 1:
            raise RequestConfigError(
                f'Only one of body, data or files may be given, got {", ".join(given)}'
            )

        self.method(method).reset_body().uri(url)
        if headers is not None:
            self.headers(headers)
        if params is not None:
            self.params(params)

        if body is not None:
            self.body_raw(body)
        elif data is not None:
            self.data(data)
        elif files is not None:
            self.multipart_files(files)
        return self

    def get(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_GET, url, body=body, headers=headers, params=params, data=data, files=files)

    def post(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_POST, url, body=body, headers=headers, params=params, data=data, files=files)

    def put(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_PUT, url, body=body, headers=headers, params=params, data=data, files=files)

    def delete(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_DELETE, url, body=body, headers=headers, params=params, data=data, files=files)

    def head(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_HEAD, url, body=body, headers=headers, params=params, data=data, files=files)

    def options(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_OPTIONS, url, body=body, headers=headers, params=params, data=data, files=files)

    def patch(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_PATCH, url, body=body, headers=headers, params=params, data=data, files=files)

    def move(self, url: str | httpx.URL, *, body=None, headers=None, params=None, data=None, files=None) -> Self:
        return self._prepare(METHOD_MOVE, url, body=body, headers=headers, params=params, data=data, files=files)

    def do(self, response: Response) -> Outcome:
        '''
        Send the request and fill `response`. See `reqpool._engine.execute`.
        '''
        return execute(self, response)

    def __str__(self) -> str:
        return self.wire.to_raw()

    def __repr__(self) -> str:
        return f'<Request [{self.wire.method}] {self.url}>'
