"""Configuration file loader and validator.

Reads the INI file into the ``Config`` dataclasses and validates the result.
Values are coerced to the type of the dataclass default: booleans use ``configparser``'s
spelling rules, numbers may be quoted, everything else is read as a Python literal.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from core.trans.engines import GoogleGtxTranslation  # noqa: F401
from core.trans.interface import TransInterface
from models.config_models import Config
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = [
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Loads ``aitrans.ini`` into a ``Config`` and validates it.

    Sections and keys missing from the file keep their dataclass defaults.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, stored in ``GENERAL.SCRIPT_NAME``.
        debug (bool | None): Force debug logging on.
        data_dir (str | None): Override for ``GENERAL.DATA_DIR``.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.

    Attributes:
        POSITIVE_NUMBERS (ClassVar[tuple[str, ...]]): Settings that must be greater than zero.
        NON_EMPTY_STRINGS (ClassVar[tuple[str, ...]]): Settings that must contain text.
    """

    POSITIVE_NUMBERS: ClassVar[tuple[str, ...]] = (
        "TRANSLATION.CACHE_MAX_SIZE",
        "TRANSLATION.TIMEOUT",
        "ANALYSIS.CACHE_MAX_SIZE",
        "ANALYSIS.TIMEOUT",
    )
    NON_EMPTY_STRINGS: ClassVar[tuple[str, ...]] = (
        "TRANSLATION.SOURCE_LANGUAGE",
        "TRANSLATION.TARGET_LANGUAGE",
        "ANALYSIS.TARGET_LANGUAGE",
        "ANALYSIS.DEFAULT_PROVIDER",
        "GENERAL.DATA_DIR",
    )

    def __init__(self, *, config_filename: str, script_name: str, **args) -> None:
        msg: str
        if not Path(config_filename).exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' or pass its location with --config."
            )
            raise ConfigFileNotFoundError(msg)

        parser = ConfigParser()
        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._apply(_ValueCoercer(parser))
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        if args.get("data_dir"):
            self.config.GENERAL.DATA_DIR = args["data_dir"]
        self._validate()
        logger.debug("Configuration loaded from '%s'", config_filename)

    def _apply(self, coercer: _ValueCoercer) -> None:
        for section_field in fields(self.config):
            section: Any = getattr(self.config, section_field.name)
            if not coercer.parser.has_section(section_field.name):
                logger.debug("Section '%s' not defined, using defaults", section_field.name)
                continue
            for key_field in fields(section):
                if not coercer.parser.has_option(section_field.name, key_field.name):
                    continue
                default: Any = getattr(section, key_field.name)
                setattr(section, key_field.name, coercer.coerce(section_field.name, key_field.name, default))

    def _lookup(self, dotted: str) -> Any:
        section_name, key_name = dotted.split(".", 1)
        return getattr(getattr(self.config, section_name), key_name)

    def _validate(self) -> None:
        """Check limits, required strings and the translation engine.

        Raises:
            ConfigTypeError: If a setting has the wrong type.
            ConfigValueError: If a setting is out of range, empty or unknown.
        """
        msg: str
        for dotted in self.POSITIVE_NUMBERS:
            value: Any = self._lookup(dotted)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                msg = f"Unsupported type used for '{dotted}': {type(value)}"
                raise ConfigTypeError(msg)
            if value <= 0:
                msg = f"'{dotted}' must be greater than zero: {value}"
                raise ConfigValueError(msg)

        for dotted in (*self.NON_EMPTY_STRINGS, "TRANSLATION.ENGINE"):
            value = self._lookup(dotted)
            if not isinstance(value, str):
                msg = f"Unsupported type used for '{dotted}': {type(value)}"
                raise ConfigTypeError(msg)
            if not value.strip():
                msg = f"'{dotted}' must not be empty"
                raise ConfigValueError(msg)

        engine: str = self.config.TRANSLATION.ENGINE
        engines: list[str] = sorted(TransInterface.registered)
        if engine not in engines:
            msg = f"Unknown value '{engine}' is set for 'TRANSLATION.ENGINE'. Available: {engines}"
            raise ConfigValueError(msg)


class _ValueCoercer:
    """Turns raw INI strings into values of the type of the matching default."""

    def __init__(self, parser: ConfigParser) -> None:
        self.parser: ConfigParser = parser
        self._by_type: dict[type, Callable[[str, str], Any]] = {
            bool: self._as_bool,
            int: self._as_int,
            float: self._as_float,
        }

    def coerce(self, section: str, key: str, default: Any) -> Any:
        """Convert ``section.key`` to the type of ``default``.

        Raises:
            ConfigValueError: If the value cannot be converted.
            ConfigTypeError: If the conversion fails on an unexpected type.
            ConfigFormatError: If a literal has invalid syntax.
        """
        converter: Callable[[str, str], Any] = self._by_type.get(type(default), self._as_literal)
        try:
            return converter(section, key)
        except ValueError as err:
            msg = f"Invalid value for {section}.{key}: {err}"
            raise ConfigValueError(msg) from err
        except TypeError as err:
            msg = f"Invalid value for {section}.{key}: {err}"
            raise ConfigTypeError(msg) from err

    def _unquoted(self, section: str, key: str) -> str:
        value: str = self.parser.get(section, key).strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":  # noqa: PLR2004
            return value[1:-1]
        return value

    def _as_bool(self, section: str, key: str) -> bool:
        return self.parser.getboolean(section, key)

    def _as_int(self, section: str, key: str) -> int:
        return int(float(self._unquoted(section, key)))

    def _as_float(self, section: str, key: str) -> float:
        return float(self._unquoted(section, key))

    def _as_literal(self, section: str, key: str) -> Any:
        raw: str = self.parser.get(section, key)
        try:
            return ast.literal_eval(raw)
        except SyntaxError as err:
            msg = f"Invalid literal for {section}.{key}: {raw}"
            raise ConfigFormatError(msg) from err
        except ValueError as err:
            msg = f"Invalid literal (strings must be quoted): {raw}"
            raise ValueError(msg) from err
