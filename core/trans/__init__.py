"""Translation engine management and interfaces.

This package provides translation through pluggable engine implementations,
fronted by a cached, deduplicating orchestrator.
"""

from core.trans.interface import (
    InvalidResponseError,
    NotSupportedEngineError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationCancelledError,
    TranslationNetworkError,
    TranslationTimeoutError,
)
from core.trans.manager import TransManager

__all__: list[str] = [
    "InvalidResponseError",
    "NotSupportedEngineError",
    "Result",
    "TransInterface",
    "TransManager",
    "TranslateExceptionError",
    "TranslationCancelledError",
    "TranslationNetworkError",
    "TranslationTimeoutError",
]
