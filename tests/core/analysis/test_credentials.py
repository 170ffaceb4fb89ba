"""Tests for EnvCredentialSupplier."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from core.analysis.credentials import EnvCredentialSupplier
from models.provider_models import WireKind

if TYPE_CHECKING:
    from pathlib import Path


def _write_keys(tmp_path: Path, providers: dict) -> Path:
    path: Path = tmp_path / "ai_api_keys.json"
    path.write_text(json.dumps({"ai_providers": providers}), encoding="utf-8")
    return path


def test_tokens_come_from_environment() -> None:
    supplier = EnvCredentialSupplier(environ={"ZHIPU_AI_API_OAUTH": " zhipu-token "})

    zhipu = supplier.get("zhipu_ai")
    gemini = supplier.get("gemini")

    assert supplier.provider_ids() == ["zhipu_ai", "gemini"]
    assert zhipu is not None
    assert zhipu.auth_token == "zhipu-token"
    assert zhipu.model == "glm-4"
    assert zhipu.kind is WireKind.CHAT_COMPLETION
    assert gemini is not None
    assert gemini.has_credential is False
    assert gemini.kind is WireKind.GENERATE_CONTENT
    assert gemini.max_tokens == 4000
    assert supplier.get("unknown") is None


def test_env_name() -> None:
    assert EnvCredentialSupplier.env_name("gemini") == "GEMINI_API_OAUTH"


def test_fallback_file_fills_missing_tokens_only(tmp_path: Path) -> None:
    path: Path = _write_keys(
        tmp_path,
        {
            "zhipu_ai": {"name": "Zhipu AI", "api_key": "file-zhipu", "api_url": "https://example.com", "model": "x"},
            "gemini": {"name": "Google Gemini", "api_key": "file-gemini", "enabled": True},
        },
    )

    supplier = EnvCredentialSupplier(path, environ={"ZHIPU_AI_API_OAUTH": "env-zhipu"})

    zhipu = supplier.get("zhipu_ai")
    gemini = supplier.get("gemini")
    assert zhipu is not None
    assert zhipu.auth_token == "env-zhipu"
    assert zhipu.endpoint_url == EnvCredentialSupplier.BUILTIN_PROVIDERS["zhipu_ai"].endpoint_url
    assert gemini is not None
    assert gemini.auth_token == "file-gemini"


def test_fallback_file_adds_unknown_providers(tmp_path: Path) -> None:
    path: Path = _write_keys(
        tmp_path,
        {
            "local_llm": {
                "name": "Local LLM",
                "api_key": "k",
                "api_url": "http://localhost:8000/v1/chat/completions",
                "model": "qwen",
                "enabled": False,
            }
        },
    )

    supplier = EnvCredentialSupplier(path, environ={})

    local = supplier.get("local_llm")
    assert local is not None
    assert local.display_name == "Local LLM"
    assert local.kind is WireKind.CHAT_COMPLETION
    assert local.enabled is False
    assert supplier.provider_ids()[-1] == "local_llm"


def test_malformed_fallback_entries_are_skipped(tmp_path: Path) -> None:
    path: Path = _write_keys(
        tmp_path,
        {
            "broken": "not an object",
            "no_url": {"api_key": "k"},
            "bad_kind": {"api_key": "k", "api_url": "http://x", "kind": "soap"},
        },
    )

    supplier = EnvCredentialSupplier(path, environ={})

    assert supplier.provider_ids() == ["zhipu_ai", "gemini"]


def test_missing_or_invalid_fallback_file_is_ignored(tmp_path: Path) -> None:
    assert EnvCredentialSupplier(tmp_path / "absent.json", environ={}).provider_ids() == ["zhipu_ai", "gemini"]

    invalid: Path = tmp_path / "invalid.json"
    invalid.write_text("{", encoding="utf-8")
    assert EnvCredentialSupplier(invalid, environ={}).provider_ids() == ["zhipu_ai", "gemini"]


def test_token_is_not_in_repr() -> None:
    supplier = EnvCredentialSupplier(environ={"GEMINI_API_OAUTH": "very-secret"})

    assert "very-secret" not in repr(supplier.get("gemini"))
