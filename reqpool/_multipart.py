from __future__ import annotations

import dataclasses as dc
import os
from collections.abc import Mapping
from typing import NamedTuple

from reqpool._errors import MultipartEncodeError
from reqpool._types import CONTENT_TYPE_OCTET_STREAM


@dc.dataclass(frozen=True, slots=True)
class File:
    '''
    One part of a multipart/form-data body. The part name is the key the
    file is stored under in a `Files` mapping.
    '''
    content: bytes = b''
    filename: str = ''
    content_type: str = ''


class MultipartBody(NamedTuple):
    body: bytes
    boundary: str

    @property
    def content_type(self) -> str:
        return f'multipart/form-data; boundary={self.boundary}'


def escape_quotes(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"')


def new_boundary() -> str:
    return os.urandom(16).hex()


def _check_header_value(value: str, part: str) -> None:
    if '\r' in value or '\n' in value:
        raise MultipartEncodeError(f'Upload {part!r} failed: line break in part header')


def part_headers(name: str, file: File) -> list[tuple[str, str]]:
    '''
    The MIME headers of one part.

    Raises
    ------
    MultipartEncodeError
        If the name, filename or content type cannot be put in a header.
    '''
    disposition = f'form-data; name="{escape_quotes(name)}"'
    if file.filename:
        disposition += f'; filename="{escape_quotes(file.filename)}"'

    headers = [('Content-Disposition', disposition)]

    content_type = file.content_type
    if not content_type and file.filename:
        content_type = CONTENT_TYPE_OCTET_STREAM
    if content_type:
        headers.append(('Content-Type', content_type))

    for _, value in headers:
        _check_header_value(value, name)
    return headers


def encode_multipart(files: Mapping[str, File], boundary: str | None = None) -> MultipartBody:
    '''
    Encode `files` as a multipart/form-data body.

    Parameters
    ----------
    files : Mapping[str, File]
        part name to file
    boundary : str | None, optional
        a random boundary is generated when omitted

    Returns
    -------
    MultipartBody

    Raises
    ------
    MultipartEncodeError
        If a part header cannot be encoded.
    '''
    boundary = boundary or new_boundary()
    _check_header_value(boundary, '<boundary>')
    try:
        delimiter = f'--{boundary}'.encode('ascii')
    except UnicodeEncodeError as exc:
        raise MultipartEncodeError(f'Invalid multipart boundary {boundary!r}') from exc

    chunks: list[bytes] = []
    for name, file in files.items():
        try:
            head = ''.join(f'{key}: {value}\r\n' for key, value in part_headers(name, file))
            encoded_head = head.encode('utf-8')
        except UnicodeEncodeError as exc:
            raise MultipartEncodeError(f'Upload {name!r} failed: {exc}') from exc

        chunks.append(delimiter + b'\r\n' + encoded_head + b'\r\n')
        chunks.append(bytes(file.content) + b'\r\n')

    chunks.append(delimiter + b'--\r\n')
    return MultipartBody(body=b''.join(chunks), boundary=boundary)
