"""Canonical result contract, error taxonomy and provider adapter base class for AI analysis.

Provider adapters translate between one wire format and the canonical ``Ok``/``Err`` result.
The registry never raises; orchestrators turn an ``Err`` into the matching ``AnalysisError``
subclass with ``Err.unwrap()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, NoReturn

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.provider_models import ProviderConfig, WireKind

__all__: list[str] = [
    "AnalysisCancelledError",
    "AnalysisError",
    "AnalysisKind",
    "AnalysisRequest",
    "AnalysisTimeoutError",
    "ApiError",
    "CanonicalResult",
    "Err",
    "ErrorKind",
    "InvalidCredentialError",
    "NetworkError",
    "NoContentError",
    "Ok",
    "ProviderInterface",
    "ProviderNotSupportedError",
    "WireRequest",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ErrorKind(StrEnum):
    NETWORK_ERROR = "network_error"
    NO_CONTENT = "no_content"
    API_ERROR = "api_error"
    PROVIDER_NOT_SUPPORTED = "provider_not_supported"
    INVALID_CREDENTIAL = "invalid_credential"
    CANCELLED = "cancelled"


class AnalysisKind(StrEnum):
    """Content kind, selecting the prompt template and part of the cache key."""

    WORD = "word"
    SENTENCE = "sentence"


class AnalysisError(Exception):
    """An error occurred during AI analysis.

    Attributes:
        kind (ErrorKind): Taxonomy entry of the error.
        message (str): Detail, e.g. the provider's own error message.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.API_ERROR

    def __init__(self, message: str = "") -> None:
        self.message: str = message
        super().__init__(message or self.kind.value)


class NetworkError(AnalysisError):
    kind = ErrorKind.NETWORK_ERROR


class NoContentError(AnalysisError):
    kind = ErrorKind.NO_CONTENT


class ApiError(AnalysisError):
    kind = ErrorKind.API_ERROR


class ProviderNotSupportedError(AnalysisError):
    kind = ErrorKind.PROVIDER_NOT_SUPPORTED


class InvalidCredentialError(AnalysisError):
    kind = ErrorKind.INVALID_CREDENTIAL


class AnalysisCancelledError(AnalysisError):
    kind = ErrorKind.CANCELLED


class AnalysisTimeoutError(AnalysisError):
    """Waiting for an identical in-flight analysis took too long."""

    kind = ErrorKind.NETWORK_ERROR


_ERROR_CLASSES: dict[ErrorKind, type[AnalysisError]] = {
    ErrorKind.NETWORK_ERROR: NetworkError,
    ErrorKind.NO_CONTENT: NoContentError,
    ErrorKind.API_ERROR: ApiError,
    ErrorKind.PROVIDER_NOT_SUPPORTED: ProviderNotSupportedError,
    ErrorKind.INVALID_CREDENTIAL: InvalidCredentialError,
    ErrorKind.CANCELLED: AnalysisCancelledError,
}


@dataclass(frozen=True)
class Ok:
    text: str

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> str:
        return self.text


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str = ""

    @property
    def is_ok(self) -> bool:
        return False

    def to_exception(self) -> AnalysisError:
        return _ERROR_CLASSES[self.kind](self.message)

    def unwrap(self) -> NoReturn:
        raise self.to_exception()


type CanonicalResult = Ok | Err


@dataclass(frozen=True)
class AnalysisRequest:
    """What to analyze.

    Attributes:
        content (str): Text to analyze.
        kind (AnalysisKind): Word or sentence.
        target_language (str): Language code the answer should be written in.
    """

    content: str
    kind: AnalysisKind
    target_language: str


@dataclass(frozen=True)
class WireRequest:
    """Serialized provider request, ready to send."""

    url: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        # URL query and headers may carry credentials
        return f"WireRequest(url={self.url.split('?', 1)[0]!r}, bytes={len(self.body)})"


class ProviderInterface(ABC):
    """Adapter between one provider wire format and the canonical result.

    Subclasses register themselves under ``fetch_wire_kind()``.

    Attributes:
        registered (ClassVar[dict[WireKind, type[ProviderInterface]]]): Adapter classes by wire kind.
    """

    registered: ClassVar[dict[WireKind, type[ProviderInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        kind: WireKind | None = cls.fetch_wire_kind()
        if kind is None:
            return
        if kind in cls.registered:
            msg: str = f"A provider adapter for '{kind}' is already registered."
            raise ValueError(msg)
        cls.registered[kind] = cls

    @staticmethod
    @abstractmethod
    def fetch_wire_kind() -> WireKind | None:
        """Return the wire kind handled by the adapter, or None to stay unregistered."""
        raise NotImplementedError

    @abstractmethod
    def build_request(self, config: ProviderConfig, prompt: str) -> WireRequest:
        """Serialize a prompt into a request for the provider described by ``config``.

        The credential has already been checked by the caller.
        """
        raise NotImplementedError

    @abstractmethod
    def parse_response(self, body: bytes, status: int) -> CanonicalResult:
        """Map a provider response to the canonical result. Never raises."""
        raise NotImplementedError

    @staticmethod
    def status_error(status: int) -> Err:
        return Err(ErrorKind.NETWORK_ERROR, f"HTTP status {status}")

    @staticmethod
    def is_success(status: int) -> bool:
        return 200 <= status < 300  # noqa: PLR2004
