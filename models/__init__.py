"""Data models for AITrans.

This package contains dataclass definitions for configuration, cache entries,
provider metadata and wire payloads, and the analysis prompt configuration.
"""

from __future__ import annotations

from models.cache_models import CacheEntry, CacheStatistics, PersistedCacheEntry
from models.config_models import Analysis, Config, General, Translation
from models.prompt_models import (
    AnalysisPromptSettings,
    DefaultProviderSetting,
    PromptConfig,
    PromptTemplates,
    default_prompt_config,
)
from models.provider_models import ProviderConfig, WireKind

__all__: list[str] = [
    "Analysis",
    "AnalysisPromptSettings",
    "CacheEntry",
    "CacheStatistics",
    "Config",
    "DefaultProviderSetting",
    "General",
    "PersistedCacheEntry",
    "PromptConfig",
    "PromptTemplates",
    "ProviderConfig",
    "Translation",
    "WireKind",
    "default_prompt_config",
]
