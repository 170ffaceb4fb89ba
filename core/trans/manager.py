from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from core.cache.inflight_manager import InFlightTimeoutError, RequestCancelledError
from core.cache.policy import is_cacheable
from core.trans.engines import GoogleGtxTranslation  # noqa: F401
from core.trans.interface import (
    NotSupportedEngineError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationCancelledError,
    TranslationTimeoutError,
)
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from core.cache.inflight_manager import InFlightManager, Lease
    from core.cache.store import CacheStore
    from handlers.async_comm import AsyncHttp
    from models.cache_models import CacheStatistics
    from models.config_models import Config


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TransManager:
    """Translation orchestrator.

    Serves single-token translations from the persisted cache, deduplicates identical concurrent
    requests through the in-flight manager, and otherwise calls the configured engine.

    Attributes:
        TRANSLATION_SLOT (ClassVar[str]): Default in-flight slot. A new translation for different
            input cancels the pending one in the same slot.
    """

    TRANSLATION_SLOT: ClassVar[str] = "translation"

    def __init__(
        self,
        config: Config,
        cache_store: CacheStore | None = None,
        inflight_manager: InFlightManager | None = None,
        http: AsyncHttp | None = None,
    ) -> None:
        """Initialize the TransManager.

        Args:
            config (Config): Application configuration.
            cache_store (CacheStore | None): Persisted translation cache. None disables caching.
            inflight_manager (InFlightManager | None): Coordinator owned by this orchestrator.
                None disables deduplication.
            http (AsyncHttp | None): Transport handed to the engine.
        """
        self.config: Config = config
        self.cache_store: CacheStore | None = cache_store
        self.inflight_manager: InFlightManager | None = inflight_manager
        self.http: AsyncHttp | None = http
        self._engine: TransInterface | None = None
        logger.debug("Registered translation engines: %s", list(TransInterface.registered))

    async def initialize(self) -> None:
        """Instantiate the engine named in ``TRANSLATION.ENGINE``.

        Raises:
            NotSupportedEngineError: If no engine is registered under that name.
        """
        name: str = self.config.TRANSLATION.ENGINE
        engine_cls: type[TransInterface] | None = TransInterface.registered.get(name)
        if engine_cls is None:
            msg: str = f"Translation engine not found: '{name}'"
            raise NotSupportedEngineError(msg)

        if self.http is None:
            msg = "TransManager requires an HTTP transport before initialization"
            raise TranslateExceptionError(msg)
        engine: TransInterface = engine_cls()
        engine.initialize(self.config, self.http)
        self._engine = engine
        logger.info("Translation engine initialized: '%s'", name)

    @property
    def engine(self) -> TransInterface:
        if self._engine is None:
            msg = "No translation engine is initialized"
            raise TranslateExceptionError(msg)
        return self._engine

    @staticmethod
    def build_cache_key(src_lang: str, tgt_lang: str, content: str) -> str:
        return f"{src_lang}|{tgt_lang}|{content}"

    async def translate(
        self,
        content: str,
        src_lang: str | None = None,
        tgt_lang: str | None = None,
        *,
        slot: str | None = TRANSLATION_SLOT,
    ) -> str:
        """Translate text, using the cache and in-flight deduplication.

        Args:
            content (str): Text to translate.
            src_lang (str | None): Source language. Defaults to ``TRANSLATION.SOURCE_LANGUAGE``.
            tgt_lang (str | None): Target language. Defaults to ``TRANSLATION.TARGET_LANGUAGE``.
            slot (str | None): In-flight slot; None keeps this request from superseding others.

        Returns:
            str: The translated text, or an empty string for blank input.

        Raises:
            TranslationNetworkError: If the backend cannot be reached.
            InvalidResponseError: If the backend payload has no translation.
            TranslationCancelledError: If a newer request superseded this one.
            TranslationTimeoutError: If waiting on an identical in-flight request timed out.
        """
        if StringUtils.is_blank(content):
            logger.debug("Empty content, skipping translation.")
            return ""

        src: str = src_lang or self.config.TRANSLATION.SOURCE_LANGUAGE
        tgt: str = tgt_lang or self.config.TRANSLATION.TARGET_LANGUAGE
        key: str = self.build_cache_key(src, tgt, content)
        cacheable: bool = is_cacheable(content)

        if cacheable and (cached := await self.fetch_cached_translation(key)) is not None:
            logger.debug("Translation cache hit: '%s'", StringUtils.preview(cached))
            return cached

        if self.inflight_manager is None:
            return await self._compute(key, content, src, tgt, cacheable=cacheable)

        lease: Lease = await self.inflight_manager.acquire(key, slot=slot)
        try:
            if lease.is_owner:
                return await lease.run(lambda: self._compute(key, content, src, tgt, cacheable=cacheable))
            logger.debug("Waiting for in-flight translation: %s", StringUtils.preview(key))
            return await lease.wait()
        except RequestCancelledError as err:
            logger.info("Translation cancelled: %s", err)
            msg: str = f"Translation cancelled: {err}"
            raise TranslationCancelledError(msg) from err
        except InFlightTimeoutError as err:
            msg = f"Translation timed out while waiting for an identical request: {err}"
            raise TranslationTimeoutError(msg) from err

    async def _compute(self, key: str, content: str, src: str, tgt: str, *, cacheable: bool) -> str:
        # Another owner may have finished between the cache lookup and the lease
        if cacheable and (cached := await self.fetch_cached_translation(key)) is not None:
            return cached

        logger.debug("Using translation engine. Source: '%s', Target: '%s'", src, tgt)
        try:
            result: Result = await self.engine.translation(content=content, tgt_lang=tgt, src_lang=src)
        except TranslateExceptionError as err:
            logger.error("Translation failed: %s", err)
            raise
        text: str = StringUtils.ensure_str(result.text)

        # Written before the in-flight record is released
        if cacheable and self.cache_store is not None:
            await self.cache_store.put(key, text)

        logger.debug("Final translation result (src: '%s', tgt: '%s'): %s", src, tgt, StringUtils.preview(text))
        return text

    async def fetch_cached_translation(self, key: str) -> str | None:
        """Return the cached translation for ``key`` and record the hit."""
        if self.cache_store is None:
            return None
        cached: str | None = await self.cache_store.get(key)
        if cached is not None:
            await self.cache_store.touch(key)
        return cached

    def cache_statistics(self) -> CacheStatistics | None:
        return self.cache_store.statistics() if self.cache_store is not None else None

    async def clear_cache(self) -> int:
        if self.cache_store is None:
            return 0
        return await self.cache_store.clear()

    async def shutdown_engines(self) -> None:
        logger.info("Class '%s' termination process started.", self.__class__.__name__)
        if self._engine is not None:
            await self._engine.close()
        logger.info("Class '%s' termination process completed.", self.__class__.__name__)
