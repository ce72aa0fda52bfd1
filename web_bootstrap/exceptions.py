"""
Custom exception classes for the web bootstrap service.

Each exception carries the HTTP status code it is surfaced with, so the
middleware that raises it can answer the client directly.
"""

from typing import Any, Dict, Optional

from starlette import status


class WebBootstrapException(Exception):
    """
    Base exception for all web bootstrap errors.

    All custom exceptions should inherit from this class
    for consistent error handling.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize web bootstrap exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code, defaults to the class status code
            details: Additional context about the error
        """
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class PayloadTooLargeException(WebBootstrapException):
    """
    Exception raised when a request body exceeds the configured limit.

    Raised either from the declared Content-Length or while streaming the body.
    """

    status_code = 413

    def __init__(
        self,
        limit: int,
        length: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize payload too large exception.

        Args:
            limit: Configured maximum body size in bytes
            length: Observed or declared body size in bytes, if known
            details: Additional context about the error
        """
        self.limit = limit
        self.length = length
        merged = {"limit": limit, "length": length}
        merged.update(details or {})
        super().__init__("request entity too large", details=merged)


class TooManyParametersException(WebBootstrapException):
    """Exception raised when a URL-encoded body has too many parameters."""

    status_code = 413

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__("too many parameters", details={"limit": limit})


class MalformedBodyException(WebBootstrapException):
    """
    Exception raised when a request body cannot be parsed.

    Used for invalid JSON, non-object JSON in strict mode and bytes that do
    not decode with the declared charset.
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize malformed body exception.

        Args:
            reason: Explanation of why parsing failed
            details: Additional context about the error
        """
        self.reason = reason
        super().__init__(reason, details=details)


class UnsupportedCharsetException(WebBootstrapException):
    """Exception raised when a body declares a charset the parser cannot decode."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE

    def __init__(self, charset: str) -> None:
        self.charset = charset
        super().__init__(
            f'unsupported charset "{charset.upper()}"',
            details={"charset": charset},
        )


class UnsupportedContentEncodingException(WebBootstrapException):
    """Exception raised when a body uses a Content-Encoding that cannot be inflated."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding
        super().__init__(
            f'unsupported content encoding "{encoding}"',
            details={"encoding": encoding},
        )
