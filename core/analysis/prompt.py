"""Prompt template resolution for AI analysis.

Templates are keyed by content kind and template language. Sources are tried in order: the
user-writable file, the bundled default file, then the built-in set. Whenever the writable copy
was absent or invalid, the loaded set is written back to it.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Final

from models.prompt_models import PromptConfig, default_prompt_config
from utils.file_utils import FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.analysis.interface import AnalysisKind
    from models.prompt_models import DefaultProviderSetting

__all__: list[str] = ["PromptConfigManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

BUNDLED_PROMPT_FILE: Final[Path] = Path(__file__).resolve().parents[2] / "config" / "ai_prompt_config.json"
DEFAULT_TEMPLATE_VERSION: Final[str] = "default"


class PromptConfigManager:
    """Loads the prompt configuration and renders prompts.

    Attributes:
        TEMPLATE_LANGUAGES (ClassVar[dict[str, str]]): Target language code to template language.
        LANGUAGE_NAMES (ClassVar[dict[str, str]]): Language code to the name substituted for
            ``{target_language}``.
    """

    TEMPLATE_LANGUAGES: ClassVar[dict[str, str]] = {
        "en": "en",
        "en-us": "en",
        "en-gb": "en",
        "ja": "ja",
        "ko": "ko",
        "th": "th",
        "vi": "vi",
        "de": "de",
        "fr": "fr",
        "es": "es",
        "zh-tw": "zh-TW",
        "zh-hant": "zh-TW",
        "zh-hk": "zh-TW",
    }

    LANGUAGE_NAMES: ClassVar[dict[str, str]] = {
        "zh": "Simplified Chinese",
        "zh-cn": "Simplified Chinese",
        "zh-hans": "Simplified Chinese",
        "zh-tw": "Traditional Chinese",
        "zh-hant": "Traditional Chinese",
        "en": "English",
        "ja": "Japanese",
        "ko": "Korean",
        "fr": "French",
        "de": "German",
        "es": "Spanish",
        "it": "Italian",
        "pt": "Portuguese",
        "ru": "Russian",
        "ar": "Arabic",
        "th": "Thai",
        "vi": "Vietnamese",
        "id": "Indonesian",
        "hi": "Hindi",
    }

    def __init__(self, writable_path: str | Path, bundled_path: str | Path | None = BUNDLED_PROMPT_FILE) -> None:
        """Initialize the manager. Nothing is read until ``load()``.

        Args:
            writable_path (str | Path): User-writable prompt configuration file.
            bundled_path (str | Path | None): Read-only default file shipped with the application.
        """
        self.writable_path: Path = Path(writable_path)
        self.bundled_path: Path | None = Path(bundled_path) if bundled_path is not None else None
        self._config: PromptConfig | None = None

    @property
    def config(self) -> PromptConfig:
        if self._config is None:
            self.load()
        if self._config is None:
            msg = "Prompt configuration is not loaded"
            raise RuntimeError(msg)
        return self._config

    @property
    def template_version(self) -> str:
        if self._config is None:
            return DEFAULT_TEMPLATE_VERSION
        return self._config.template_version

    @property
    def default_provider(self) -> DefaultProviderSetting:
        return self.config.ai_analysis.default_ai_provider

    def load(self) -> PromptConfig:
        """Load the configuration from the first valid source.

        Returns:
            PromptConfig: The loaded configuration.
        """
        loaded: PromptConfig | None = self._read(self.writable_path)
        if loaded is not None:
            logger.info("Prompt configuration loaded: '%s' (%s)", self.writable_path, loaded.template_version)
            self._config = loaded
            return loaded

        if self.bundled_path is not None:
            loaded = self._read(self.bundled_path)
        if loaded is None:
            logger.warning("Using the built-in prompt configuration")
            loaded = default_prompt_config()
        else:
            logger.info("Prompt configuration loaded: '%s' (%s)", self.bundled_path, loaded.template_version)

        self._config = loaded
        self._write(loaded)
        return loaded

    def reload(self) -> PromptConfig:
        logger.info("Reloading prompt configuration")
        self._config = None
        return self.load()

    def resolve(self, kind: AnalysisKind | str, language: str) -> str:
        """Return the template for ``kind`` in the language matching ``language``.

        Falls back to the primary language of the template set.

        Raises:
            ValueError: If ``kind`` is not a known content kind.
        """
        settings = self.config.ai_analysis
        templates: dict[str, str] = settings.prompt_templates.for_kind(str(kind))
        template_language: str = self.template_language(language)
        template: str | None = templates.get(template_language)
        if not template:
            logger.debug("No '%s' template for '%s', using '%s'", kind, template_language, settings.primary_language)
            template = templates[settings.primary_language]
        return template

    def render(self, kind: AnalysisKind | str, content: str, target_language: str) -> str:
        template: str = self.resolve(kind, target_language)
        language_name: str = self.language_name(target_language)
        prompt: str = template.replace("{target_language}", language_name)
        # Older template files name the content placeholder after its kind
        for placeholder in ("{content}", "{word}", "{sentence}"):
            prompt = prompt.replace(placeholder, content)
        return prompt

    def set_default_provider(self, provider_key: str, provider_name: str) -> None:
        """Record ``provider_key`` as the default provider and persist the configuration."""
        current: PromptConfig = self.config
        setting = replace(
            current.ai_analysis.default_ai_provider, provider_key=provider_key, provider_name=provider_name
        )
        updated = replace(
            current,
            ai_analysis=replace(current.ai_analysis, default_ai_provider=setting),
            last_updated=date.today().isoformat(),
        )
        self._config = updated
        self._write(updated)
        logger.info("Default provider saved: '%s'", provider_key)

    @classmethod
    def template_language(cls, language: str) -> str:
        code: str = language.strip().replace("_", "-").lower()
        if code in cls.TEMPLATE_LANGUAGES:
            return cls.TEMPLATE_LANGUAGES[code]
        primary: str = code.split("-", 1)[0]
        return cls.TEMPLATE_LANGUAGES.get(primary, primary or "zh")

    @classmethod
    def language_name(cls, language: str) -> str:
        code: str = language.strip().replace("_", "-").lower()
        if code in cls.LANGUAGE_NAMES:
            return cls.LANGUAGE_NAMES[code]
        return cls.LANGUAGE_NAMES.get(code.split("-", 1)[0], language)

    @staticmethod
    def _read(path: Path) -> PromptConfig | None:
        try:
            data: Any = FileUtils.read_json(path)
        except FileNotFoundError:
            logger.debug("Prompt configuration not found: '%s'", path)
            return None
        except FileUtilsError as err:
            logger.warning("Invalid prompt configuration: %s", err)
            return None
        if not isinstance(data, dict):
            logger.warning("Prompt configuration is not a JSON object: '%s'", path)
            return None
        try:
            return PromptConfig.from_dict(data, infer_missing=True)
        except (KeyError, TypeError, ValueError, AttributeError) as err:
            logger.warning("Invalid prompt configuration '%s': %s", path, err)
            return None

    def _write(self, config: PromptConfig) -> None:
        try:
            FileUtils.write_json_atomic(self.writable_path, config.to_dict())
        except OSError as err:
            logger.warning("Failed to write prompt configuration '%s': %s", self.writable_path, err)
        else:
            logger.debug("Prompt configuration written: '%s'", self.writable_path)
