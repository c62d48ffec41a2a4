import pytest

from reqpool import File, MultipartEncodeError, encode_multipart
from reqpool._multipart import escape_quotes, part_headers


def test_escape_quotes():
    assert escape_quotes('a"b\\c') == 'a\\"b\\\\c'


def test_single_part_layout():
    encoded = encode_multipart({'doc': File(b'hello', 'a.txt', 'text/plain')}, boundary='xyz')

    assert encoded.body == (
        b'--xyz\r\n'
        b'Content-Disposition: form-data; name="doc"; filename="a.txt"\r\n'
        b'Content-Type: text/plain\r\n'
        b'\r\n'
        b'hello\r\n'
        b'--xyz--\r\n'
    )
    assert encoded.content_type == 'multipart/form-data; boundary=xyz'


def test_default_content_type_only_with_filename():
    assert part_headers('f', File(b'', 'blob.bin')) == [
        ('Content-Disposition', 'form-data; name="f"; filename="blob.bin"'),
        ('Content-Type', 'application/octet-stream'),
    ]
    assert part_headers('field', File(b'value')) == [
        ('Content-Disposition', 'form-data; name="field"'),
    ]


def test_quotes_escaped_in_names():
    [(_, disposition)] = part_headers('a"b', File(b'x'))
    assert disposition == 'form-data; name="a\\"b"'


def test_every_part_present():
    files = {'one': File(b'1'), 'two': File(b'2', 'two.txt')}
    encoded = encode_multipart(files)

    assert encoded.body.count(f'--{encoded.boundary}\r\n'.encode()) == 2
    assert encoded.body.endswith(f'--{encoded.boundary}--\r\n'.encode())
    assert b'name="one"' in encoded.body
    assert b'name="two"; filename="two.txt"' in encoded.body


def test_random_boundaries_differ():
    assert encode_multipart({}).boundary != encode_multipart({}).boundary


@pytest.mark.parametrize('file', [
    File(b'x', 'evil\r\nX-Injected: 1'),
    File(b'x', 'a.txt', 'text/plain\nX-Injected: 1'),
])
def test_line_breaks_rejected(file):
    with pytest.raises(MultipartEncodeError):
        encode_multipart({'f': file})


def test_non_ascii_boundary_rejected():
    with pytest.raises(MultipartEncodeError):
        encode_multipart({'f': File(b'x')}, boundary='grenzé')
