"""Asynchronous HTTP transport shared by the translation engine and the analysis providers.

``AsyncHttp`` wraps one aiohttp session. ``get`` decodes the body by content type and
raises for non-2xx statuses; ``post_raw`` returns the status and undecoded body so callers can
interpret provider error payloads themselves. Transport failures surface as ``AsyncCommError``
subclasses.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping

    from aiohttp.client import ClientResponse


__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "RawResponse",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 5.0


@dataclass(frozen=True)
class RawResponse:
    """Status code and undecoded body of an HTTP response."""

    status: int
    body: bytes
    content_type: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300  # noqa: PLR2004


class AsyncHttp:
    """Asynchronous HTTP client with pluggable content type decoders.

    Must be constructed inside a running event loop because the aiohttp session is created eagerly.
    """

    def __init__(self) -> None:
        """Create the session and register the default decoders.

        The default handlers include:
            - "text/plain", "text/html": UTF-8 text.
            - "application/json", "text/javascript", "application/javascript": JSON documents.
        """
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        # translate.googleapis.com may label its JSON array as JavaScript
        self.add_handler("text/javascript", lambda x: json.loads(x.decode("utf-8")))
        self.add_handler("application/javascript", lambda x: json.loads(x.decode("utf-8")))
        self.list_handlers()
        self.initialize_session()

    async def __aenter__(self) -> Self:
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Create the aiohttp session unless an open one exists.

        Args:
            suppress_already_log (bool): Do not log when the session is already open.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession()
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def closed(self) -> bool:
        return self.__session is None or self.__session.closed

    async def close(self) -> None:
        if self.__session and not self.__session.closed:
            await self.__session.close()
        logger.info("%s session closed", self.__class__.__name__)

    async def get(
        self,
        *,
        url: str,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        total_timeout: float = 10.0,
    ) -> Any:
        """Perform a GET request and decode the body.

        Args:
            url (str): Request URL.
            params (Mapping[str, str] | None): Query parameters, URL-encoded by aiohttp.
            headers (Mapping[str, str] | None): Extra request headers.
            total_timeout (float): Total timeout in seconds. Zero or negative disables it.

        Returns:
            Any: The decoded body, or None for an empty body.

        Raises:
            AsyncCommTimeoutError: If the server does not answer in time.
            AsyncCommInvalidContentTypeError: If no decoder matches the response content type.
            AsyncCommError: On connection failures and non-2xx statuses.
        """
        return await self._request("GET", url=url, total_timeout=total_timeout, params=params, headers=headers)

    async def post_raw(
        self,
        *,
        url: str,
        body: bytes,
        headers: Mapping[str, str] | None = None,
        total_timeout: float = 60.0,
    ) -> RawResponse:
        """POST an already serialized body and return the response without interpreting it.

        Non-2xx statuses are returned, not raised.

        Args:
            url (str): Request URL.
            body (bytes): Serialized request body.
            headers (Mapping[str, str] | None): Request headers, including content type and authentication.
            total_timeout (float): Total timeout in seconds.

        Returns:
            RawResponse: Status code and body bytes.

        Raises:
            AsyncCommTimeoutError: If the server does not answer in time.
            AsyncCommError: On connection failures.
        """
        return await self._request(
            "POST", url=url, total_timeout=total_timeout, raw=True, data=body, headers=headers
        )

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body with the handler registered for its content type.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type
                or the handler cannot decode the body.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        logger.debug("'Content-Type': '%s'", content_type)

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler is None:
            msg: str = f"Unknown Content-Type '{content_type}'"
            raise AsyncCommInvalidContentTypeError(msg)
        try:
            return handler(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            msg = f"Failed to decode '{content_type}' response: {err}"
            raise AsyncCommInvalidContentTypeError(msg) from err

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler

    def list_handlers(self) -> None:
        if not self.content_handlers:
            logger.info("No content type handlers registered")
            return
        logger.info("Handlers registered for content types '%s'", list(self.content_handlers.keys()))

    async def _request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        total_timeout: float,
        raw: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Perform one request.

        Args:
            method (HTTPMethod): The HTTP method to use.
            url (str): The URL to send the request to.
            total_timeout (float): Total timeout for the request in seconds.
            raw (bool): Return a ``RawResponse`` instead of raising for the status and decoding.
            **kwargs: Additional keyword arguments passed to ``ClientSession.request``.

        Returns:
            Any: The decoded body, or a ``RawResponse`` when ``raw`` is True.
        """
        logger.debug("[%s] url=%s timeout=%s", method, _strip_query(url), total_timeout)
        try:
            async with self.session.request(
                method=method,
                url=url,
                timeout=_build_timeout(total_timeout),
                **kwargs,
            ) as resp:
                if raw:
                    content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
                    body: bytes = await resp.read()
                    logger.debug("[%s] status=%s bytes=%d", method, resp.status, len(body))
                    return RawResponse(status=resp.status, body=body, content_type=content_type)
                resp.raise_for_status()
                return await self.decode_response(resp)

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except aiohttp.ClientResponseError as err:
            logger.debug(err)
            msg = "Error response from the server."
            raise AsyncCommError(msg, response=err) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not running, or the port is closed."
            raise AsyncCommError(msg) from err
        except (ConnectionResetError, aiohttp.ClientError) as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err


def _build_timeout(total_timeout: float) -> aiohttp.ClientTimeout:
    if total_timeout <= 0:
        return aiohttp.ClientTimeout(total=None)
    if total_timeout < CONNECT_TIMEOUT:
        # A connect timeout longer than the total would never apply
        return aiohttp.ClientTimeout(total=total_timeout)
    return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)


def _strip_query(url: str) -> str:
    # Query strings may carry API keys
    return url.split("?", 1)[0]


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    When constructed with ``response=`` an ``aiohttp.ClientResponseError``, its status code is
    appended to the message and kept in ``status``.
    """

    def __init__(self, msg: str | BaseException, **kwargs: Any) -> None:
        self.msg: str = str(msg)
        self.status: int | None = None

        rsp: aiohttp.ClientResponseError | None = kwargs.pop("response", None)
        if isinstance(rsp, aiohttp.ClientResponseError):
            self.status = rsp.status
            self.msg = f"{self.msg}: status='{rsp.status}'"

        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """The request did not complete within the timeout."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """The response content type has no decoder, or the body could not be decoded."""
