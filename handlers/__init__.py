"""Transport handlers for AITrans.

This package provides the asynchronous HTTP client shared by the translation engine
and the analysis providers.
"""

from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommTimeoutError,
    AsyncHttp,
    RawResponse,
)

__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "RawResponse",
]
