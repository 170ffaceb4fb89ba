"""AI analysis of words and sentences.

Provider adapters normalize heterogeneous provider APIs into one canonical result; the
orchestrator adds prompt rendering, caching and in-flight deduplication on top.
"""

from core.analysis.credentials import CredentialSupplier, EnvCredentialSupplier
from core.analysis.interface import (
    AnalysisCancelledError,
    AnalysisError,
    AnalysisKind,
    AnalysisRequest,
    AnalysisTimeoutError,
    ApiError,
    CanonicalResult,
    Err,
    ErrorKind,
    InvalidCredentialError,
    NetworkError,
    NoContentError,
    Ok,
    ProviderInterface,
    ProviderNotSupportedError,
    WireRequest,
)
from core.analysis.manager import AnalysisManager
from core.analysis.prompt import PromptConfigManager
from core.analysis.registry import ProviderChangedEvent, ProviderRegistry

__all__: list[str] = [
    "AnalysisCancelledError",
    "AnalysisError",
    "AnalysisKind",
    "AnalysisManager",
    "AnalysisRequest",
    "AnalysisTimeoutError",
    "ApiError",
    "CanonicalResult",
    "CredentialSupplier",
    "EnvCredentialSupplier",
    "Err",
    "ErrorKind",
    "InvalidCredentialError",
    "NetworkError",
    "NoContentError",
    "Ok",
    "PromptConfigManager",
    "ProviderChangedEvent",
    "ProviderInterface",
    "ProviderNotSupportedError",
    "ProviderRegistry",
    "WireRequest",
]
