"""Configuration loading and validation for AITrans.

This package loads, parses and validates the settings in the aitrans.ini file.
"""

from config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigLoaderError,
    ConfigTypeError,
    ConfigValueError,
)

__all__: list[str] = [
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]
