from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from utils.file_utils import FileUtils, InvalidJsonFileError

if TYPE_CHECKING:
    from pathlib import Path


def test_resolve_path_expands_user_and_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("AITRANS_PROFILE", "work")

    assert FileUtils.resolve_path("~/$AITRANS_PROFILE/cache.json") == tmp_path.resolve() / "work" / "cache.json"


def test_resolve_path_relative_to_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    assert FileUtils.resolve_path("data/cache.json") == tmp_path.resolve() / "data" / "cache.json"


def test_resolve_path_strict_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FileUtils.resolve_path(tmp_path / "absent", strict=True)


def test_write_then_read_json(tmp_path: Path) -> None:
    path: Path = tmp_path / "nested" / "doc.json"

    FileUtils.write_json_atomic(path, {"text": "猫", "count": 2})

    assert FileUtils.read_json(path) == {"text": "猫", "count": 2}
    assert "猫" in path.read_text(encoding="utf-8")
    assert [p.name for p in path.parent.iterdir()] == ["doc.json"]


def test_failed_write_keeps_previous_file(tmp_path: Path) -> None:
    path: Path = tmp_path / "doc.json"
    FileUtils.write_json_atomic(path, {"version": 1})

    with pytest.raises(TypeError):
        FileUtils.write_json_atomic(path, {"version": object()})

    assert json.loads(path.read_text(encoding="utf-8")) == {"version": 1}
    assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]


def test_read_json_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FileUtils.read_json(tmp_path / "absent.json")

    broken: Path = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(InvalidJsonFileError):
        FileUtils.read_json(broken)
