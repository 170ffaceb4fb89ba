"""Configuration data models for the translation and analysis orchestrators.

Each dataclass mirrors one section of the INI file; field names match the INI keys.
Defaults are the values used when a key is absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Analysis",
    "Config",
    "General",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    DATA_DIR: str = "~/.aitrans"
    LOG_FILE: str = "aitrans.log"
    SCRIPT_NAME: str = ""


@dataclass
class Translation:
    ENGINE: str = "google_gtx"
    SOURCE_LANGUAGE: str = "auto"
    TARGET_LANGUAGE: str = "zh"
    TIMEOUT: float = 30.0
    CACHE_MAX_SIZE: int = 10000
    CACHE_FILE: str = "translation_cache.json"


@dataclass
class Analysis:
    DEFAULT_PROVIDER: str = "zhipu_ai"
    TARGET_LANGUAGE: str = "zh"
    TIMEOUT: float = 60.0
    CACHE_MAX_SIZE: int = 50
    API_KEYS_FILE: str = "ai_api_keys.json"
    PROMPT_CONFIG_FILE: str = "ai_prompt_config.json"


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    ANALYSIS: Analysis = field(default_factory=Analysis)
