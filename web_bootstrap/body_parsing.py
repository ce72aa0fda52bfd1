"""
Request body parsing middleware.

Parses ``application/json`` and ``application/x-www-form-urlencoded`` bodies
before they reach any route, enforcing a size limit while the body streams in.
The parsed value is stored on ``request.state.body`` and the raw bytes are
replayed downstream so handlers can still call ``await request.body()``.
"""

import codecs
import json
import logging
import re
import zlib
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, unquote_plus

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .exceptions import (
    MalformedBodyException,
    PayloadTooLargeException,
    TooManyParametersException,
    UnsupportedCharsetException,
    UnsupportedContentEncodingException,
    WebBootstrapException,
)
from .logging_config import get_logger, log_event
from .middleware import mark_handled_by

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/json"
URLENCODED_MEDIA_TYPE = "application/x-www-form-urlencoded"
SUPPORTED_ENCODINGS = ("identity", "gzip", "deflate")

# Nesting and array limits for extended URL-encoded parsing
NESTING_DEPTH = 32
ARRAY_LIMIT = 20

_KEY_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def parse_content_type(header: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Split a Content-Type header into media type and charset.

    Args:
        header: Raw Content-Type header value, if any

    Returns:
        Lowercased media type and lowercased charset (None when absent)
    """
    if not header:
        return "", None

    media_type, _, params = header.partition(";")
    charset = None
    for param in params.split(";"):
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset":
            charset = value.strip().strip('"').lower() or None

    return media_type.strip().lower(), charset


def parse_json_body(body: bytes, charset: Optional[str] = None) -> Any:
    """
    Parse a JSON request body in strict mode.

    Only objects and arrays are accepted at the top level. An empty body
    yields an empty dict.

    Args:
        body: Raw body bytes
        charset: Declared charset, defaults to utf-8

    Returns:
        Parsed JSON value

    Raises:
        UnsupportedCharsetException: If the charset is not a UTF encoding
        MalformedBodyException: If the body is not valid strict JSON
    """
    charset = charset or "utf-8"
    if not charset.startswith("utf-"):
        raise UnsupportedCharsetException(charset)

    text = _decode(body, charset)
    stripped = text.lstrip(" \t\n\r")
    if not stripped:
        return {}

    if stripped[0] not in "{[":
        raise MalformedBodyException(
            f"Unexpected token {stripped[0]!r}, JSON body must be an object or array"
        )

    try:
        return json.loads(stripped, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise MalformedBodyException(f"Malformed JSON body: {exc.msg}") from exc
    except (ValueError, RecursionError) as exc:
        # Over-deep nesting or integers past the int string conversion limit
        raise MalformedBodyException(f"Malformed JSON body: {exc}") from exc


def _reject_constant(name: str) -> Any:
    raise MalformedBodyException(f"Unexpected token {name} in JSON body")


def parse_urlencoded_body(
    body: bytes,
    charset: Optional[str] = None,
    extended: bool = True,
    parameter_limit: int = 1000,
) -> Dict[str, Any]:
    """
    Parse a URL-encoded request body.

    Args:
        body: Raw body bytes
        charset: Declared charset, only utf-8 is accepted
        extended: Build nested objects and arrays from bracket keys
        parameter_limit: Maximum number of parameters

    Returns:
        Parsed parameters

    Raises:
        UnsupportedCharsetException: If the charset is not utf-8
        TooManyParametersException: If the parameter limit is exceeded
        MalformedBodyException: If the body is not valid utf-8
    """
    charset = charset or "utf-8"
    if charset != "utf-8":
        raise UnsupportedCharsetException(charset)

    text = _decode(body, charset)
    if not text:
        return {}

    if text.count("&") + 1 > parameter_limit:
        raise TooManyParametersException(parameter_limit)

    if extended:
        return parse_nested_query(text)

    result: Dict[str, Any] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        _merge_scalar(result, key, value)
    return result


def parse_nested_query(text: str, depth: int = NESTING_DEPTH) -> Dict[str, Any]:
    """
    Parse a query string with bracket notation into nested structures.

    ``a[b]=1`` builds ``{"a": {"b": "1"}}``, ``a[]=1&a[]=2`` and ``a[0]=1``
    build lists, and a repeated plain key collects its values into a list.
    Indices above ``ARRAY_LIMIT`` are kept as object keys. Segments past
    ``depth`` are folded into a single literal key.

    Args:
        text: Decoded query string
        depth: Maximum number of bracket segments to expand

    Returns:
        Nested dict of string values
    """
    root: Dict[Any, Any] = {}

    for pair in text.split("&"):
        if not pair:
            continue
        raw_key, _, raw_value = pair.partition("=")
        key = unquote_plus(raw_key)
        if not key:
            continue
        _assign(root, _split_key(key, depth), unquote_plus(raw_value))

    return _compact(root)


def _decode(body: bytes, charset: str) -> str:
    try:
        codecs.lookup(charset)
    except LookupError as exc:
        raise UnsupportedCharsetException(charset) from exc

    try:
        text = body.decode(charset)
    except UnicodeDecodeError as exc:
        raise MalformedBodyException(f"Body is not valid {charset}") from exc

    return text.lstrip("\ufeff")


def _split_key(key: str, depth: int) -> List[str]:
    bracket = key.find("[")
    if bracket <= 0:
        return [key]

    segments = [key[:bracket]]
    position = bracket
    while position < len(key) and len(segments) <= depth:
        match = _KEY_SEGMENT.match(key, position)
        if not match:
            break
        segments.append(match.group(1))
        position = match.end()

    if position < len(key):
        # Unparsed remainder is kept verbatim as one more key
        segments.append(key[position:])

    return segments


def _is_index(segment: str) -> bool:
    return segment.isdigit() and int(segment) <= ARRAY_LIMIT


def _next_index(node: Dict[Any, Any]) -> int:
    indices = [key for key in node if isinstance(key, int)]
    return max(indices) + 1 if indices else 0


def _assign(node: Dict[Any, Any], segments: List[str], value: str) -> None:
    for position, segment in enumerate(segments):
        if segment == "":
            key: Any = _next_index(node)
        elif _is_index(segment) and position > 0:
            key = int(segment)
        else:
            key = segment

        if position == len(segments) - 1:
            _merge_scalar(node, key, value)
            return

        child = node.get(key)
        if isinstance(child, str):
            child = {0: child}
        elif isinstance(child, list):
            child = dict(enumerate(child))
        elif not isinstance(child, dict):
            child = {}
        node[key] = child
        node = child


def _merge_scalar(node: Dict[Any, Any], key: Any, value: str) -> None:
    existing = node.get(key)
    if existing is None:
        node[key] = value
    elif isinstance(existing, dict):
        existing[_next_index(existing)] = value
    elif isinstance(existing, list):
        existing.append(value)
    else:
        node[key] = [existing, value]


def _compact(node: Any) -> Any:
    if isinstance(node, list):
        return [_compact(item) for item in node]
    if not isinstance(node, dict):
        return node

    if node and all(isinstance(key, int) for key in node):
        return [_compact(node[key]) for key in sorted(node)]

    return {str(key): _compact(value) for key, value in node.items()}


def get_parsed_body(request: Request) -> Any:
    """
    Return the body parsed by ``BodyParserMiddleware``.

    Usable directly or as a FastAPI dependency.

    Args:
        request: Current request

    Returns:
        Parsed body, or an empty dict when nothing was parsed
    """
    return getattr(request.state, "body", {})


def inflate_body(body: bytes, encoding: str, limit: int) -> bytes:
    """
    Decompress a request body according to its Content-Encoding.

    Args:
        body: Raw body bytes as received
        encoding: Lowercased Content-Encoding (identity, gzip or deflate)
        limit: Maximum inflated size in bytes

    Returns:
        Inflated body

    Raises:
        UnsupportedContentEncodingException: For any other encoding
        PayloadTooLargeException: If the inflated body exceeds ``limit``
        MalformedBodyException: If the compressed stream is corrupt or truncated
    """
    if encoding not in SUPPORTED_ENCODINGS:
        raise UnsupportedContentEncodingException(encoding)
    if encoding == "identity" or not body:
        return body

    # wbits | 32 accepts both gzip and zlib headers
    decompressor = zlib.decompressobj(zlib.MAX_WBITS | 32)
    try:
        inflated = decompressor.decompress(body, limit + 1)
    except zlib.error as exc:
        raise MalformedBodyException(f"Invalid {encoding} body") from exc

    if len(inflated) > limit:
        raise PayloadTooLargeException(limit)
    if not decompressor.eof:
        raise MalformedBodyException(f"Truncated {encoding} body")
    return inflated


class BodyParserMiddleware:
    """
    ASGI middleware parsing JSON and URL-encoded request bodies.

    Rejects oversized, malformed and wrongly encoded bodies with the status
    code of the matching exception before the downstream app is called.
    """

    def __init__(
        self,
        app: ASGIApp,
        limit: int = 16 * 1024,
        extended: bool = True,
        parameter_limit: int = 1000,
    ) -> None:
        """
        Initialize body parser middleware.

        Args:
            app: ASGI application instance
            limit: Maximum body size in bytes, applied before and after inflation
            extended: Nested parsing for URL-encoded bodies
            parameter_limit: Maximum number of URL-encoded parameters
        """
        self.app = app
        self.limit = limit
        self.extended = extended
        self.parameter_limit = parameter_limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        state["body"] = {}

        headers = Headers(scope=scope)
        media_type, charset = parse_content_type(headers.get("content-type"))
        if media_type not in (JSON_MEDIA_TYPE, URLENCODED_MEDIA_TYPE):
            await self.app(scope, receive, send)
            return

        encoding = (headers.get("content-encoding") or "identity").strip().lower()

        try:
            if encoding not in SUPPORTED_ENCODINGS:
                raise UnsupportedContentEncodingException(encoding)
            if encoding == "identity":
                self._check_declared_length(headers.get("content-length"))

            body, disconnected = await self._read_body(receive)
            if disconnected:
                log_event(
                    logger,
                    logging.DEBUG,
                    "Client disconnected before the body was received",
                    path=scope["path"],
                )
                return

            inflated = inflate_body(body, encoding, self.limit)
            if media_type == JSON_MEDIA_TYPE:
                state["body"] = parse_json_body(inflated, charset)
            else:
                state["body"] = parse_urlencoded_body(
                    inflated,
                    charset,
                    extended=self.extended,
                    parameter_limit=self.parameter_limit,
                )
        except WebBootstrapException as exc:
            mark_handled_by(scope, "body_parser")
            log_event(
                logger,
                logging.WARNING,
                f"Rejected request body: {exc.message}",
                method=scope["method"],
                path=scope["path"],
                status_code=exc.status_code,
                content_type=media_type,
                content_encoding=encoding,
                **exc.details,
            )
            response = JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.message},
            )
            await response(scope, receive, send)
            return

        await self.app(scope, _replay(body, receive), send)

    def _check_declared_length(self, content_length: Optional[str]) -> None:
        if content_length is None:
            return
        try:
            length = int(content_length)
        except ValueError as exc:
            raise MalformedBodyException("Invalid Content-Length header") from exc
        if length > self.limit:
            raise PayloadTooLargeException(self.limit, length)

    async def _read_body(self, receive: Receive) -> Tuple[bytes, bool]:
        chunks: List[bytes] = []
        received = 0

        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return b"", True

            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.limit:
                raise PayloadTooLargeException(self.limit, received)
            chunks.append(chunk)

            if not message.get("more_body", False):
                return b"".join(chunks), False


def _replay(body: bytes, receive: Receive) -> Receive:
    sent = False

    async def replay_receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay_receive
