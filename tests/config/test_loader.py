from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigTypeError,
    ConfigValueError,
)

SHIPPED_INI: Path = Path(__file__).resolve().parents[2] / "aitrans.ini"


def _write_ini(tmp_path: Path, content: str) -> Path:
    ini_path: Path = tmp_path / "aitrans.ini"
    ini_path.write_text(dedent(content), encoding="utf-8")
    return ini_path


def test_config_loader_raises_for_missing_file(tmp_path: Path) -> None:
    ini_path: Path = tmp_path / "missing.ini"
    with pytest.raises(ConfigFileNotFoundError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_shipped_ini_is_valid() -> None:
    loader = ConfigLoader(config_filename=str(SHIPPED_INI), script_name="aitrans")

    assert loader.config.GENERAL.SCRIPT_NAME == "aitrans"
    assert loader.config.TRANSLATION.ENGINE == "google_gtx"
    assert loader.config.ANALYSIS.DEFAULT_PROVIDER == "zhipu_ai"
    assert loader.config.ANALYSIS.CACHE_MAX_SIZE == 50


def test_missing_sections_use_defaults(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TRANSLATION]
        TARGET_LANGUAGE = 'ja'
        """,
    )

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.TRANSLATION.TARGET_LANGUAGE == "ja"
    assert loader.config.TRANSLATION.CACHE_MAX_SIZE == 10000
    assert loader.config.ANALYSIS.TIMEOUT == 60.0
    assert loader.config.GENERAL.DEBUG is False


def test_types_follow_defaults(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = yes

        [TRANSLATION]
        TIMEOUT = "12.5"
        CACHE_MAX_SIZE = 200

        [ANALYSIS]
        TIMEOUT = 90
        """,
    )

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.GENERAL.DEBUG is True
    assert loader.config.TRANSLATION.TIMEOUT == 12.5
    assert loader.config.TRANSLATION.CACHE_MAX_SIZE == 200
    assert isinstance(loader.config.ANALYSIS.TIMEOUT, float)


def test_command_line_overrides(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = false
        DATA_DIR = '~/.aitrans'
        """,
    )

    loader = ConfigLoader(
        config_filename=str(ini_path),
        script_name="test",
        debug=True,
        data_dir=str(tmp_path / "data"),
    )

    assert loader.config.GENERAL.DEBUG is True
    assert loader.config.GENERAL.DATA_DIR == str(tmp_path / "data")


def test_unknown_engine_is_rejected(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TRANSLATION]
        ENGINE = 'babelfish'
        """,
    )

    with pytest.raises(ConfigValueError, match="babelfish"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


@pytest.mark.parametrize(
    ("section", "line"),
    [
        ("TRANSLATION", "CACHE_MAX_SIZE = 0"),
        ("TRANSLATION", "TIMEOUT = -1"),
        ("ANALYSIS", "CACHE_MAX_SIZE = -5"),
        ("ANALYSIS", "TIMEOUT = 0"),
    ],
)
def test_non_positive_limits_are_rejected(tmp_path: Path, section: str, line: str) -> None:
    ini_path: Path = _write_ini(tmp_path, f"[{section}]\n{line}\n")

    with pytest.raises(ConfigValueError, match="greater than zero"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


@pytest.mark.parametrize(
    ("section", "line"),
    [
        ("ANALYSIS", "DEFAULT_PROVIDER = ''"),
        ("TRANSLATION", "TARGET_LANGUAGE = '  '"),
        ("GENERAL", "DATA_DIR = ''"),
    ],
)
def test_empty_strings_are_rejected(tmp_path: Path, section: str, line: str) -> None:
    ini_path: Path = _write_ini(tmp_path, f"[{section}]\n{line}\n")

    with pytest.raises(ConfigValueError, match="must not be empty"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_unquoted_string_is_rejected(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TRANSLATION]
        ENGINE = google_gtx
        """,
    )

    with pytest.raises(ConfigValueError, match="Invalid literal"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_wrong_literal_type_is_rejected(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [ANALYSIS]
        DEFAULT_PROVIDER = ['zhipu_ai']
        """,
    )

    with pytest.raises(ConfigTypeError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


@pytest.mark.parametrize(
    "content",
    [
        "[TRANSLATION]\nCACHE_MAX_SIZE = many\n",
        "[TRANSLATION]\nENGINE = 'google_gtx\n",
        "TIMEOUT = 10\n",
    ],
)
def test_malformed_files_raise_format_error(tmp_path: Path, content: str) -> None:
    ini_path: Path = _write_ini(tmp_path, content)

    with pytest.raises(ConfigFormatError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")
