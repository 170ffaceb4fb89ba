"""Shared service container.

``SharedData`` is constructed once at startup and owns every service instance: the HTTP
transport, the two cache stores, one in-flight coordinator per orchestrator, the provider
registry and both orchestrators. Services receive their collaborators by injection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.analysis.credentials import EnvCredentialSupplier
from core.analysis.manager import AnalysisManager
from core.analysis.prompt import PromptConfigManager
from core.analysis.registry import ProviderRegistry
from core.cache.inflight_manager import InFlightManager
from core.cache.store import EphemeralFIFOCacheStore, PersistentLRUCacheStore
from core.trans.manager import TransManager
from handlers.async_comm import AsyncHttp
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from pathlib import Path

    from core.analysis.credentials import CredentialSupplier
    from models.config_models import Config


__all__: list[str] = ["SharedData"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class SharedData:
    _config: Config = field()
    _supplier: CredentialSupplier | None = field(default=None)
    _http: AsyncHttp = field(init=False)
    _translation_cache: PersistentLRUCacheStore = field(init=False)
    _analysis_cache: EphemeralFIFOCacheStore = field(init=False)
    _translation_inflight: InFlightManager = field(init=False)
    _analysis_inflight: InFlightManager = field(init=False)
    _prompts: PromptConfigManager = field(init=False)
    _registry: ProviderRegistry = field(init=False)
    _trans_manager: TransManager = field(init=False)
    _analysis_manager: AnalysisManager = field(init=False)

    async def async_init(self) -> None:
        """Create, wire and load every service. Must run inside the event loop."""
        data_dir: Path = FileUtils.resolve_path(self.config.GENERAL.DATA_DIR)
        translation = self.config.TRANSLATION
        analysis = self.config.ANALYSIS

        self._http = AsyncHttp()
        self._translation_cache = PersistentLRUCacheStore(
            "translation", translation.CACHE_MAX_SIZE, data_dir / translation.CACHE_FILE
        )
        self._analysis_cache = EphemeralFIFOCacheStore("analysis", analysis.CACHE_MAX_SIZE)
        self._translation_inflight = InFlightManager("translation")
        self._analysis_inflight = InFlightManager("analysis")

        if self._supplier is None:
            self._supplier = EnvCredentialSupplier(data_dir / analysis.API_KEYS_FILE)
        self._prompts = PromptConfigManager(data_dir / analysis.PROMPT_CONFIG_FILE)
        self._registry = ProviderRegistry(self._supplier, self._prompts, self._http, timeout=analysis.TIMEOUT)

        self._trans_manager = TransManager(
            self.config, self._translation_cache, self._translation_inflight, self._http
        )
        self._analysis_manager = AnalysisManager(
            self.config, self._registry, self._prompts, self._analysis_cache, self._analysis_inflight
        )

        for component in (
            self._translation_cache,
            self._analysis_cache,
            self._translation_inflight,
            self._analysis_inflight,
        ):
            await component.component_load()
        await self._trans_manager.initialize()
        await self._analysis_manager.initialize()
        logger.info("Services initialized (data directory: '%s')", data_dir)

    async def close(self) -> None:
        """Cancel pending work, flush the persisted cache and close the transport."""
        await self._translation_inflight.component_teardown()
        await self._analysis_inflight.component_teardown()
        await self._registry.drain_notifications()
        await self._trans_manager.shutdown_engines()
        await self._translation_cache.component_teardown()
        await self._analysis_cache.component_teardown()
        await self._http.close()
        logger.info("Services shut down")

    @property
    def config(self) -> Config:
        return self._config

    @property
    def http(self) -> AsyncHttp:
        return self._http

    @property
    def translation_cache(self) -> PersistentLRUCacheStore:
        return self._translation_cache

    @property
    def analysis_cache(self) -> EphemeralFIFOCacheStore:
        return self._analysis_cache

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def prompts(self) -> PromptConfigManager:
        return self._prompts

    @property
    def trans_manager(self) -> TransManager:
        return self._trans_manager

    @property
    def analysis_manager(self) -> AnalysisManager:
        return self._analysis_manager
