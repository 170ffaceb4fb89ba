from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from core.analysis.interface import (
    AnalysisCancelledError,
    AnalysisError,
    AnalysisKind,
    AnalysisRequest,
    AnalysisTimeoutError,
    CanonicalResult,
    NoContentError,
)
from core.cache.inflight_manager import InFlightTimeoutError, RequestCancelledError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from core.analysis.prompt import PromptConfigManager
    from core.analysis.registry import ProviderChangedEvent, ProviderRegistry
    from core.cache.inflight_manager import InFlightManager, Lease
    from core.cache.store import CacheStore
    from models.cache_models import CacheStatistics
    from models.config_models import Config

__all__: list[str] = ["AnalysisManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class AnalysisManager:
    """AI analysis orchestrator.

    Results are cached per (kind, template version, content) in the in-memory FIFO store, and
    identical concurrent requests share one provider call. The provider is the one selected when
    the call starts; switching providers does not affect calls already running. Analyses run in
    no in-flight slot unless the caller passes one, so a new analysis never cancels another.
    """

    def __init__(
        self,
        config: Config,
        registry: ProviderRegistry,
        prompts: PromptConfigManager,
        cache_store: CacheStore | None = None,
        inflight_manager: InFlightManager | None = None,
    ) -> None:
        self.config: Config = config
        self.registry: ProviderRegistry = registry
        self.prompts: PromptConfigManager = prompts
        self.cache_store: CacheStore | None = cache_store
        self.inflight_manager: InFlightManager | None = inflight_manager
        self.registry.subscribe(self._on_provider_changed)

    async def initialize(self) -> None:
        """Load the prompt configuration and select the initial provider."""
        await asyncio.to_thread(self.prompts.load)
        self.registry.initialize(
            self.prompts.default_provider.provider_key,
            self.config.ANALYSIS.DEFAULT_PROVIDER,
        )

    def build_cache_key(self, kind: AnalysisKind | str, content: str) -> str:
        return f"{kind}:{self.prompts.template_version}:{content}"

    async def analyze_word(self, word: str, target_language: str | None = None) -> str:
        return await self.analyze(word, AnalysisKind.WORD, target_language)

    async def analyze_sentence(self, sentence: str, target_language: str | None = None) -> str:
        return await self.analyze(sentence, AnalysisKind.SENTENCE, target_language)

    async def analyze(
        self,
        content: str,
        kind: AnalysisKind,
        target_language: str | None = None,
        *,
        slot: str | None = None,
    ) -> str:
        """Analyze text with the current provider.

        Args:
            content (str): Word or sentence to analyze.
            kind (AnalysisKind): Selects the prompt template.
            target_language (str | None): Answer language. Defaults to ``ANALYSIS.TARGET_LANGUAGE``.
            slot (str | None): In-flight slot. A new key in the same slot cancels the previous one.

        Returns:
            str: The provider's answer.

        Raises:
            AnalysisError: A subclass matching the failure kind.
        """
        if StringUtils.is_blank(content):
            msg = "Nothing to analyze"
            raise NoContentError(msg)

        kind = AnalysisKind(kind)
        request = AnalysisRequest(
            content=content,
            kind=kind,
            target_language=target_language or self.config.ANALYSIS.TARGET_LANGUAGE,
        )
        provider_id: str | None = self.registry.current_provider_id
        key: str = self.build_cache_key(kind, content)

        if (cached := await self.fetch_cached_analysis(key)) is not None:
            logger.debug("Analysis cache hit: %s", StringUtils.preview(key))
            return cached

        if self.inflight_manager is None:
            return await self._compute(key, provider_id, request)

        lease: Lease = await self.inflight_manager.acquire(key, slot=slot)
        try:
            if lease.is_owner:
                return await lease.run(lambda: self._compute(key, provider_id, request))
            logger.debug("Waiting for in-flight analysis: %s", StringUtils.preview(key))
            return await lease.wait()
        except RequestCancelledError as err:
            logger.info("Analysis cancelled: %s", err)
            msg: str = f"Analysis cancelled: {err}"
            raise AnalysisCancelledError(msg) from err
        except InFlightTimeoutError as err:
            msg = f"Analysis timed out while waiting for an identical request: {err}"
            raise AnalysisTimeoutError(msg) from err

    async def _compute(self, key: str, provider_id: str | None, request: AnalysisRequest) -> str:
        if (cached := await self.fetch_cached_analysis(key)) is not None:
            return cached

        logger.info("Requesting %s analysis from '%s'", request.kind, provider_id)
        result: CanonicalResult = await self.registry.execute(provider_id, request)
        try:
            text: str = result.unwrap()
        except AnalysisError as err:
            logger.error("Analysis failed (%s): %s", err.kind, err)
            raise

        if self.cache_store is not None:
            await self.cache_store.put(key, text)
        logger.debug("Analysis result: %s", StringUtils.preview(text))
        return text

    async def fetch_cached_analysis(self, key: str) -> str | None:
        if self.cache_store is None:
            return None
        cached: str | None = await self.cache_store.get(key)
        if cached is not None:
            await self.cache_store.touch(key)
        return cached

    def set_provider(self, provider_id: str) -> CanonicalResult:
        return self.registry.set_current_provider(provider_id)

    async def reload_config(self) -> None:
        """Re-read the prompt templates and drop every cached analysis."""
        await asyncio.to_thread(self.prompts.reload)
        cleared: int = await self.clear_cache()
        logger.info(
            "Prompt configuration reloaded (%s), %d cached analyses cleared", self.prompts.template_version, cleared
        )

    def cache_statistics(self) -> CacheStatistics | None:
        return self.cache_store.statistics() if self.cache_store is not None else None

    async def clear_cache(self) -> int:
        if self.cache_store is None:
            return 0
        return await self.cache_store.clear()

    async def _on_provider_changed(self, event: ProviderChangedEvent) -> None:
        if not self.prompts.default_provider.auto_save_user_choice:
            return
        await asyncio.to_thread(self.prompts.set_default_provider, event.provider_id, event.display_name)
