"""Core services for AITrans.

This package contains the service container, the translation and analysis orchestrators,
and the caching and request coordination they share.
"""

from core.shared_data import SharedData
from core.version import VERSION

__all__: list[str] = [
    "VERSION",
    "SharedData",
]
