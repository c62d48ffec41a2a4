'''
**reqpool**
---------

A pooled HTTP client layer over httpx. Request and Response objects are
recycled through `RequestPool`; each call injects and persists cookies
through a per-request cookie jar, retries transient transport failures,
optionally follows redirects and can record a trace. Responses decode
UTF-8 or GB18030 bodies lazily and extract titles and regex captures.
'''
from reqpool._cookies import (
    CookieStore,
    MemoryCookieJar,
    cookie_target,
    inject_cookies,
    parse_set_cookie,
    persist_cookies,
)
from reqpool._engine import TraceInfo, execute
from reqpool._errors import (
    BodyTooLargeError,
    MultipartEncodeError,
    NoAttemptsLeftError,
    PoolError,
    ReqpoolError,
    RequestCanceled,
    RequestConfigError,
)
from reqpool._multipart import File, MultipartBody, encode_multipart
from reqpool._request import Request, WireRequest
from reqpool._response import Response, WireResponse, decode_body
from reqpool._retry import Outcome
from reqpool._transport import (
    ClientConfig,
    ClientRegistry,
    TLSProfile,
    WireClient,
    verifying_ssl_context,
)
from reqpool._types import (
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_OCTET_STREAM,
    CONTENT_TYPE_TEXT,
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
    Params,
)
from reqpool.pool import (
    ObjectPool,
    RequestPool,
    acquire,
    acquire_request,
    acquire_response,
    default_pool,
    release,
    release_request,
    release_response,
)

__all__ = [
    'CookieStore',
    'MemoryCookieJar',
    'cookie_target',
    'inject_cookies',
    'parse_set_cookie',
    'persist_cookies',
    'TraceInfo',
    'execute',
    'BodyTooLargeError',
    'MultipartEncodeError',
    'NoAttemptsLeftError',
    'PoolError',
    'ReqpoolError',
    'RequestCanceled',
    'RequestConfigError',
    'File',
    'MultipartBody',
    'encode_multipart',
    'Request',
    'WireRequest',
    'Response',
    'WireResponse',
    'decode_body',
    'Outcome',
    'ClientConfig',
    'ClientRegistry',
    'TLSProfile',
    'WireClient',
    'verifying_ssl_context',
    'CONTENT_TYPE_FORM',
    'CONTENT_TYPE_JSON',
    'CONTENT_TYPE_OCTET_STREAM',
    'CONTENT_TYPE_TEXT',
    'CONTENT_TYPE_XML',
    'METHOD_DELETE',
    'METHOD_GET',
    'METHOD_HEAD',
    'METHOD_MOVE',
    'METHOD_OPTIONS',
    'METHOD_PATCH',
    'METHOD_POST',
    'METHOD_PUT',
    'Data',
    'Files',
    'Header',
    'Params',
    'ObjectPool',
    'RequestPool',
    'acquire',
    'acquire_request',
    'acquire_response',
    'default_pool',
    'release',
    'release_request',
    'release_response',
]
