from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Final, Literal, TypeAlias

if TYPE_CHECKING:
    from reqpool._multipart import File


METHOD_GET: Final = 'GET'
METHOD_POST: Final = 'POST'
METHOD_PUT: Final = 'PUT'
METHOD_MOVE: Final = 'MOVE'
METHOD_DELETE: Final = 'DELETE'
METHOD_HEAD: Final = 'HEAD'
METHOD_OPTIONS: Final = 'OPTIONS'
METHOD_PATCH: Final = 'PATCH'

HttpMethod = Literal[
    'GET', 'POST', 'PUT', 'MOVE', 'DELETE', 'HEAD', 'OPTIONS', 'PATCH'
]

CONTENT_TYPE_JSON: Final = 'application/json'
CONTENT_TYPE_FORM: Final = 'application/x-www-form-urlencoded'
CONTENT_TYPE_XML: Final = 'application/xml'
CONTENT_TYPE_TEXT: Final = 'text/plain'
CONTENT_TYPE_OCTET_STREAM: Final = 'application/octet-stream'

Params: TypeAlias = Mapping[str, str]
Data: TypeAlias = Mapping[str, str]
Header: TypeAlias = Mapping[str, str]
Files: TypeAlias = 'Mapping[str, File]'
