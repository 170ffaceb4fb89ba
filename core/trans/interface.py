"""Abstract base class for translation backends and the translation error hierarchy.

Engines register themselves by name when subclassed, so the orchestrator can instantiate the
engine named in the configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from handlers.async_comm import AsyncHttp
    from models.config_models import Config

__all__: list[str] = [
    "EngineAttributes",
    "InvalidResponseError",
    "NotSupportedEngineError",
    "Result",
    "TransInterface",
    "TranslateExceptionError",
    "TranslationCancelledError",
    "TranslationNetworkError",
    "TranslationTimeoutError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class EngineAttributes:
    """Engine capabilities.

    Attributes:
        name (str): Display name of the engine.
        supports_auto_detection (bool): Whether ``auto`` is accepted as a source language.
    """

    name: str
    supports_auto_detection: bool = True


@dataclass
class Result:
    """Translation result.

    Attributes:
        text (str | None): Translated text.
        detected_source_lang (str | None): Source language reported by the backend.
        metadata (dict[str, str] | None): Engine-specific extras.
    """

    text: str | None = None
    detected_source_lang: str | None = None
    metadata: dict[str, str] | None = None

    def __str__(self) -> str:
        return self.text or ""


class TranslateExceptionError(Exception):
    """An error occurred during the translation process."""


class NotSupportedEngineError(TranslateExceptionError):
    """The configured translation engine is not registered."""


class TranslationNetworkError(TranslateExceptionError):
    """The backend could not be reached or answered with an error status."""


class InvalidResponseError(TranslateExceptionError):
    """The backend answered with a payload that does not contain a translation."""


class TranslationCancelledError(TranslateExceptionError):
    """The translation was superseded by a newer request or the service shut down."""


class TranslationTimeoutError(TranslateExceptionError):
    """Waiting for an identical in-flight translation took too long."""


class TransInterface(ABC):
    """Abstract base class for translation engines.

    Attributes:
        registered (ClassVar[dict[str, type[TransInterface]]]): Engine classes keyed by
            ``fetch_engine_name()``.
    """

    registered: ClassVar[dict[str, type[TransInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not callable(getattr(cls, "fetch_engine_name", None)):
            msg = "Subclasses of TransInterface must implement the static method fetch_engine_name()."
            raise TypeError(msg)

        name = cls.fetch_engine_name()
        if not isinstance(name, str) or name == "":
            return  # Anonymous engines (test doubles) stay out of the registry

        if name in cls.registered:
            msg: str = f"A translation engine with the name '{name}' is already registered."
            raise ValueError(msg)

        cls.registered[name] = cls

    def __init__(self) -> None:
        self._engine_attributes: EngineAttributes | None = None

    @property
    def engine_attributes(self) -> EngineAttributes:
        if self._engine_attributes is None:
            msg = "Engine attributes have not been set."
            raise RuntimeError(msg)
        return self._engine_attributes

    @engine_attributes.setter
    def engine_attributes(self, attributes: EngineAttributes) -> None:
        if self._engine_attributes is not None:
            msg = "Engine attributes can only be set once during initialization."
            raise RuntimeError(msg)
        self._engine_attributes = attributes

    @property
    def engine_name(self) -> str:
        return self.engine_attributes.name

    @staticmethod
    @abstractmethod
    def fetch_engine_name() -> str:
        """Return the registry name of the engine.

        Called from ``__init_subclass__``, so it must work at class definition time.
        """
        raise NotImplementedError

    @abstractmethod
    def initialize(self, config: Config, http: AsyncHttp) -> None:
        """Prepare the engine.

        Args:
            config (Config): Application configuration.
            http (AsyncHttp): Shared HTTP transport.
        """
        raise NotImplementedError

    @abstractmethod
    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        """Translate text.

        Args:
            content (str): Text to translate.
            tgt_lang (str): Target language code.
            src_lang (str | None): Source language code. None or ``auto`` requests detection.

        Returns:
            Result: Translation result with a non-empty ``text``.

        Raises:
            TranslationNetworkError: If the backend cannot be reached or returns an error status.
            InvalidResponseError: If the payload does not contain a translation.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release engine resources. The shared HTTP transport is closed by its owner."""
        logger.info("'%s' process termination", self.__class__.__name__)
