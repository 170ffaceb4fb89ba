"""Google Translate engine using the public ``client=gtx`` endpoint.

The endpoint answers ``GET /translate_a/single?client=gtx&sl=..&tl=..&dt=t&q=..`` with a nested
JSON array whose ``[0][0][0]`` element is the translated text and whose ``[2]`` element is the
detected source language.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.trans.interface import (
    EngineAttributes,
    InvalidResponseError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationNetworkError,
)
from handlers.async_comm import AsyncCommError, AsyncCommInvalidContentTypeError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from handlers.async_comm import AsyncHttp
    from models.config_models import Config

__all__: list[str] = ["GoogleGtxTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

GTX_ENDPOINT: Final[str] = "https://translate.googleapis.com/translate_a/single"
DETECTED_LANGUAGE_INDEX: Final[int] = 2


class GoogleGtxTranslation(TransInterface):
    """Translation through translate.googleapis.com without an API key.

    Attributes:
        REQUEST_HEADERS (ClassVar[dict[str, str]]): Browser-like headers the endpoint expects.
    """

    REQUEST_HEADERS: ClassVar[dict[str, str]] = {
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Referer": "https://translate.google.com/",
        "Accept": "application/json, text/javascript, */*",
    }

    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self._timeout: float = 30.0

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None:
            msg = "The gtx engine is not initialised"
            raise TranslateExceptionError(msg)
        return self.__http

    @staticmethod
    def fetch_engine_name() -> str:
        return "google_gtx"

    def initialize(self, config: Config, http: AsyncHttp) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(name="Google Translate (gtx)", supports_auto_detection=True)
        self.__http = http
        self._timeout = config.TRANSLATION.TIMEOUT

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        logger.debug(
            "'content': '%s', 'src_lang': '%s', 'tgt_lang': '%s'", StringUtils.preview(content), src_lang, tgt_lang
        )
        params: dict[str, str] = {
            "client": "gtx",
            "sl": src_lang or "auto",
            "tl": tgt_lang,
            "dt": "t",
            "q": content,
        }
        try:
            data: Any = await self._http.get(
                url=GTX_ENDPOINT, params=params, headers=self.REQUEST_HEADERS, total_timeout=self._timeout
            )
        except AsyncCommInvalidContentTypeError as err:
            logger.error(err)
            msg = "Google returned a response that could not be decoded"
            raise InvalidResponseError(msg) from err
        except AsyncCommError as err:
            logger.error(err)
            msg = f"Google translation request failed: {err}"
            raise TranslationNetworkError(msg) from err

        result: Result = self.parse_response(data)
        logger.info("translation completed (%s > %s)", src_lang or "auto", tgt_lang)
        return result

    @staticmethod
    def parse_response(data: Any) -> Result:
        """Extract the translation from a gtx payload.

        Only the first segment (``data[0][0][0]``) is used.

        Raises:
            InvalidResponseError: If the payload does not have the expected shape or the text is empty.
        """
        try:
            segment: Any = data[0][0]
            if not isinstance(data, list) or not isinstance(data[0], list) or not isinstance(segment, list):
                raise TypeError(type(data).__name__)
            text: Any = segment[0]
        except (IndexError, KeyError, TypeError) as err:
            msg = "Unexpected response structure from Google"
            raise InvalidResponseError(msg) from err

        if not isinstance(text, str) or not text:
            msg = "Google response does not contain translated text"
            raise InvalidResponseError(msg)

        detected: str | None = None
        if isinstance(data, list) and len(data) > DETECTED_LANGUAGE_INDEX and isinstance(
            data[DETECTED_LANGUAGE_INDEX], str
        ):
            detected = data[DETECTED_LANGUAGE_INDEX]
        return Result(text=text, detected_source_lang=detected)
