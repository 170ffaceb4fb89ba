from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

__all__: list[str] = [
    "FileUtils",
    "FileUtilsError",
    "InvalidJsonFileError",
]


class FileUtils:
    """File helpers shared by the persisted cache and the prompt/provider configuration files."""

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-supplied path to an absolute path.

        Environment variables and ``~`` are expanded; relative paths are resolved against the
        current working directory.

        Args:
            path (str | Path): The input path (e.g., "~/aitrans/$PROFILE/cache.json").
            strict (bool): Raise if the path does not exist.

        Returns:
            Path: The absolute path.
        """
        expanded: str = os.path.expandvars(str(path))
        user_expanded: Path = Path(expanded).expanduser()

        if user_expanded.is_absolute():
            return user_expanded.resolve(strict=strict)
        return (Path.cwd() / user_expanded).resolve(strict=strict)

    @staticmethod
    def read_json(file_path: Path) -> Any:
        """Load a JSON document.

        Args:
            file_path (Path): File to read.

        Returns:
            Any: The decoded document.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidJsonFileError: If the file cannot be read or decoded.
        """
        try:
            with file_path.open(encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as err:
            msg = f"Failed to read JSON file '{file_path}': {err}"
            raise InvalidJsonFileError(msg) from err

    @staticmethod
    def write_json_atomic(file_path: Path, data: Any) -> None:
        """Write a JSON document through a temporary file and an atomic replace.

        Readers never observe a partially written file; on failure the previous file stays intact.

        Args:
            file_path (Path): Destination file. Missing parent directories are created.
            data (Any): JSON-serializable document.

        Raises:
            OSError: If the temporary file cannot be written or moved into place.
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(file_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


class FileUtilsError(Exception):
    """Custom exception for FileUtils-related errors."""


class InvalidJsonFileError(FileUtilsError):
    """The file exists but does not contain a readable JSON document."""
