'''
**reqpool._response**
---------

The response side of a call: `WireResponse` holds what came off the wire,
`Response` wraps it with lazily decoded and cached text, title
extraction and a handful of lookup helpers.
'''
from __future__ import annotations

import dataclasses as dc
import html
import re
from typing import Self

import httpx

from reqpool._cookies import parse_set_cookie


_TITLE_RE = re.compile(r'<title.*?>(.*?)</title>', re.IGNORECASE | re.MULTILINE | re.DOTALL)
_BLANK_RE = re.compile(r'[\n\r\t]+')


def decode_body(body: bytes) -> str:
    '''
    Decode a response body as UTF-8 when it is valid UTF-8, otherwise as
    GB18030. Bytes neither codec accepts are replaced.

    Parameters
    ----------
    body : bytes

    Returns
    -------
    str
    '''
    try:
        return body.decode('utf-8')
    except UnicodeDecodeError:
        pass

    try:
        return body.decode('gb18030')
    except UnicodeDecodeError:
        return body.decode('utf-8', errors='replace')


@dc.dataclass(slots=True)
class WireResponse:
    '''
    A fully read response as returned by the wire client. `content` is the
    body exactly as received, still content-encoded.
    '''
    status_code: int
    headers: httpx.Headers = dc.field(default_factory=httpx.Headers)
    content: bytes = b''
    reason_phrase: str = ''
    http_version: str = 'HTTP/1.1'
    url: str = ''
    redirects: int = 0

    @classmethod
    def from_httpx(cls, response: httpx.Response, content: bytes) -> Self:
        return cls(
            status_code=response.status_code,
            headers=response.headers,
            content=content,
            reason_phrase=response.reason_phrase,
            http_version=response.http_version,
            url=str(response.request.url),
        )

    def uncompressed(self) -> bytes:
        '''
        The body with its Content-Encoding removed, or the body as received
        when it cannot be decoded.
        '''
        decoded = httpx.Response(
            self.status_code,
            headers=self.headers,
            stream=httpx.ByteStream(self.content),
        )
        try:
            return decoded.read()
        except httpx.DecodingError:
            return self.content

    def header_bytes(self) -> bytes:
        lines = [f'{self.http_version} {self.status_code} {self.reason_phrase}'.encode('latin-1')]
        lines.extend(name + b': ' + value for name, value in self.headers.raw)
        return b'\r\n'.join(lines) + b'\r\n\r\n'


class Response:
    '''
    A poolable response. `text` and `title` are computed on first access
    and cached until the next call reusing this object starts.
    '''
    __slots__ = ('wire', '_text', '_title', '_released')

    def __init__(self) -> None:
        self.wire: WireResponse | None = None
        self._text: str | None = None
        self._title: str | None = None
        self._released: bool = False

    def reset(self) -> None:
        '''
        Forget the wire response and every cache.
        '''
        self.wire = None
        self._text = None
        self._title = None

    @property
    def released(self) -> bool:
        return self._released

    @property
    def status_code(self) -> int:
        return self.wire.status_code if self.wire else 0

    @property
    def headers(self) -> httpx.Headers:
        return self.wire.headers if self.wire else httpx.Headers()

    @property
    def content(self) -> bytes:
        return self.wire.content if self.wire else b''

    @property
    def url(self) -> str:
        return self.wire.url if self.wire else ''

    def header(self, name: str) -> str | None:
        return self.headers.get(name)

    def body_uncompressed(self) -> bytes:
        return self.wire.uncompressed() if self.wire else b''

    @property
    def text(self) -> str:
        '''
        The decoded body, see `decode_body`.
        '''
        if self._text is None:
            self._text = decode_body(self.body_uncompressed())
        return self._text

    @property
    def title(self) -> str:
        '''
        The unescaped content of the first `<title>` element with tabs and
        line breaks removed, or an empty string.
        '''
        if self._title is None:
            title = ''
            if match := _TITLE_RE.search(self.text):
                title = _BLANK_RE.sub('', html.unescape(match.group(1))).strip()
            self._title = title
        return self._title

    def search(self, pattern: str | re.Pattern[str]) -> dict[str, str]:
        '''
        Match `pattern` against the decoded body and collect its named
        groups.

        Parameters
        ----------
        pattern : str | re.Pattern[str]

        Returns
        -------
        dict[str, str]
            group name to matched text, empty when nothing matched. Named
            groups that did not participate map to an empty string.
        '''
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        match = regex.search(self.text)
        if match is None:
            return {}
        return {name: match.group(name) or '' for name in regex.groupindex}

    def body_contains(self, value: str) -> bool:
        return value in self.text

    def header_contains(self, value: str | bytes) -> bool:
        if self.wire is None:
            return False
        if isinstance(value, str):
            value = value.encode('latin-1')
        return value in self.wire.header_bytes()

    def cookie(self, name: str) -> str | None:
        '''
        Value of the first cookie `name` set by this response, if any.
        Attributes are never reported as cookies and cookies that are
        already expired are skipped.
        '''
        values = self.headers.get_list('set-cookie')
        if not values:
            return None

        for cookie in parse_set_cookie(self.url or 'http://localhost/', values):
            if cookie.name == name:
                return cookie.value or ''
        return None

    def __str__(self) -> str:
        if self.wire is None:
            return ''
        head = self.wire.header_bytes().decode('latin-1')
        return head + self.wire.content.decode('utf-8', errors='replace')

    def __repr__(self) -> str:
        return f'<Response [{self.status_code}] {self.url}>'
