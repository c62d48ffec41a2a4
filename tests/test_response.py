import gzip
import re

import httpx
import pytest

from reqpool import Response, WireResponse, decode_body


def make_response(content: bytes = b'', headers=None, status_code: int = 200) -> Response:
    response = Response()
    response.wire = WireResponse(
        status_code=status_code,
        headers=httpx.Headers(headers or {}),
        content=content,
        reason_phrase='OK',
        url='http://example.com/',
    )
    return response


@pytest.mark.parametrize('body, expected', [
    ('héllo wörld'.encode(), 'héllo wörld'),
    ('中文'.encode('gb18030'), '中文'),
    (b'', ''),
])
def test_decode_body(body, expected):
    assert decode_body(body) == expected


def test_empty_response():
    response = Response()
    assert response.status_code == 0
    assert response.text == ''
    assert response.title == ''
    assert str(response) == ''
    assert response.header_contains('anything') is False


@pytest.mark.parametrize('body, title', [
    (b'<html><title>  Hello\nWorld </title></html>', 'HelloWorld'),
    (b'<TITLE lang="en">Fish &amp; Chips</TITLE>', 'Fish & Chips'),
    (b'<title>\r\n\tfirst</title><title>second</title>', 'first'),
    (b'<p>no title</p>', ''),
])
def test_title(body, title):
    assert make_response(body).title == title


def test_title_gb18030():
    body = '<title>你好</title>'.encode('gb18030')
    assert make_response(body).title == '你好'


def test_search_named_groups():
    response = make_response(b'id=42 name=bob')

    assert response.search(r'id=(?P<id>\d+)') == {'id': '42'}
    assert response.search(re.compile(r'id=(?P<id>\d+)(?P<missing>x)?')) == {'id': '42', 'missing': ''}
    assert response.search(r'zzz(?P<x>\d)') == {}
    assert response.search(r'id=(\d+)') == {}


def test_contains():
    response = make_response(b'hello world', headers={'X-Test': 'yes'})

    assert response.body_contains('world')
    assert not response.body_contains('planet')
    assert response.header_contains('X-Test: yes')
    assert response.header_contains(b'HTTP/1.1 200 OK')
    assert not response.header_contains('X-Other')


def test_header_lookup():
    response = make_response(headers={'Content-Type': 'text/html'})
    assert response.header('content-type') == 'text/html'
    assert response.header('x-missing') is None


def test_cookie():
    response = make_response(headers=[('Set-Cookie', 'a=1; Path=/'), ('Set-Cookie', 'b=two')])

    assert response.cookie('a') == '1'
    assert response.cookie('b') == 'two'
    assert response.cookie('c') is None


@pytest.mark.parametrize('header, name, expected', [
    ('a=1; Path=/; Secure; Partitioned', 'a', '1'),
    ('a=1; Priority=High', 'a', '1'),
    ('a=1; Priority=High', 'Priority', None),
    ('a=1; HttpOnly; SameSite=Lax', 'SameSite', None),
    ('a=x y', 'a', 'x y'),
    ('session=abc; Expires=Wed, 21 Oct 2099 07:28:00 GMT', 'session', 'abc'),
])
def test_cookie_header_shapes(header, name, expected):
    assert make_response(headers=[('Set-Cookie', header)]).cookie(name) == expected


def test_cookie_first_match_wins():
    response = make_response(headers=[('Set-Cookie', 'a=first'), ('Set-Cookie', 'a=second; Path=/x')])
    assert response.cookie('a') == 'first'


def test_gzip_body():
    response = make_response(gzip.compress(b'<title>zipped</title>'), headers={'Content-Encoding': 'gzip'})

    assert response.content != response.body_uncompressed()
    assert response.body_uncompressed() == b'<title>zipped</title>'
    assert response.title == 'zipped'


def test_corrupt_gzip_falls_back_to_raw():
    response = make_response(b'plain text', headers={'Content-Encoding': 'gzip'})
    assert response.body_uncompressed() == b'plain text'
    assert response.text == 'plain text'


def test_str_and_reset():
    response = make_response(b'body', headers={'X-A': '1'})

    assert str(response) == 'HTTP/1.1 200 OK\r\nX-A: 1\r\n\r\nbody'
    assert repr(response) == '<Response [200] http://example.com/>'

    assert response.text == 'body'
    response.reset()
    assert response.wire is None
    assert response.text == ''
