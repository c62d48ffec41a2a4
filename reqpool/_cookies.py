'''
**reqpool._cookies**
---------

Translation between wire headers and a URL scoped cookie store. Matching
and expiry rules are left to `http.cookiejar`; this module only copies
cookies into outgoing requests and parses `Set-Cookie` headers back into
the store.
'''
from __future__ import annotations

import email.message
import http.cookiejar
import logging
import urllib.request
from collections.abc import Iterable, Iterator
from http.cookiejar import Cookie
from typing import TYPE_CHECKING, Protocol

import httpx

if TYPE_CHECKING:
    from reqpool._request import WireRequest


logger = logging.getLogger(__name__)


class CookieStore(Protocol):
    '''
    Anything that can hand out and keep cookies per URL.
    '''

    def cookies_for(self, url: str) -> list[Cookie]:
        ...

    def store(self, url: str, cookies: Iterable[Cookie]) -> None:
        ...


class MemoryCookieJar:
    '''
    The default `CookieStore`, an in-memory `http.cookiejar.CookieJar`.
    '''
    __slots__ = ('_jar', '_policy')

    def __init__(self, policy: http.cookiejar.CookiePolicy | None = None) -> None:
        self._policy = policy or http.cookiejar.DefaultCookiePolicy()
        self._jar = http.cookiejar.CookieJar(policy=self._policy)

    def cookies_for(self, url: str) -> list[Cookie]:
        '''
        Cookies the policy allows sending to `url`, most specific path
        first.
        '''
        request = urllib.request.Request(url)
        self._jar.clear_expired_cookies()
        matched = [
            cookie for cookie in self._jar
            if self._policy.domain_return_ok(cookie.domain, request)
            and self._policy.path_return_ok(cookie.path, request)
            and self._policy.return_ok(cookie, request)
        ]
        matched.sort(key=lambda cookie: len(cookie.path or ''), reverse=True)
        return matched

    def store(self, url: str, cookies: Iterable[Cookie]) -> None:
        request = urllib.request.Request(url)
        for cookie in cookies:
            self._jar.set_cookie_if_ok(cookie, request)

    def clear(self) -> None:
        self._jar.clear()

    def __iter__(self) -> Iterator[Cookie]:
        return iter(self._jar)

    def __len__(self) -> int:
        return len(self._jar)

    def __repr__(self) -> str:
        return f'<MemoryCookieJar [{len(self)} cookies]>'


class _SetCookieResponse:
    '''
    Just enough of a urllib response for `CookieJar.make_cookies`.
    '''

    def __init__(self, values: Iterable[str]) -> None:
        self._message = email.message.Message()
        for value in values:
            # appends, does not replace
            self._message['Set-Cookie'] = value

    def info(self) -> email.message.Message:
        return self._message


_PARSER = http.cookiejar.CookieJar()


def parse_set_cookie(url: str, values: Iterable[str]) -> list[Cookie]:
    '''
    Parse `Set-Cookie` header values received from `url`.

    Parameters
    ----------
    url : str
    values : Iterable[str]

    Returns
    -------
    list[Cookie]
    '''
    return _PARSER.make_cookies(_SetCookieResponse(values), urllib.request.Request(url))


def cookie_target(url: httpx.URL | str) -> str | None:
    '''
    The URL cookies are looked up and stored against, or None when the
    request URL cannot be used for cookies.
    '''
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        logger.warning(f'Skipping cookies for unparsable URL {url!r}: {exc}')
        return None

    if parsed.scheme not in ('http', 'https') or not parsed.host:
        logger.warning(f'Skipping cookies for URL without http(s) host: {url!r}')
        return None

    return str(parsed)


def inject_cookies(store: CookieStore, url: str, wire: WireRequest) -> int:
    '''
    Copy the cookies `store` holds for `url` into the outgoing request.
    Cookies already on the request are kept; a stored cookie replaces a
    request cookie of the same name.

    Returns
    -------
    int
        number of cookies injected
    '''
    cookies = store.cookies_for(url)
    for cookie in cookies:
        wire.cookies[cookie.name] = cookie.value or ''

    if cookies:
        logger.debug(f'Injected {len(cookies)} cookies for {url}')
    return len(cookies)


def persist_cookies(store: CookieStore, url: str, headers: httpx.Headers) -> int:
    '''
    Store every cookie set by a response for `url`.

    Returns
    -------
    int
        number of cookies parsed from the response
    '''
    values = headers.get_list('set-cookie')
    if not values:
        return 0

    cookies = parse_set_cookie(url, values)
    store.store(url, cookies)
    logger.debug(f'Stored {len(cookies)} cookies from {url}')
    return len(cookies)
