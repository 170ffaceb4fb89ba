"""Tests for the SharedData service container."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from core.analysis.credentials import EnvCredentialSupplier
from core.shared_data import SharedData
from core.trans.engines import GoogleGtxTranslation  # noqa: F401
from models.config_models import Config

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def config(tmp_path: Path) -> Config:
    config = Config()
    config.GENERAL.DATA_DIR = str(tmp_path)
    config.ANALYSIS.CACHE_MAX_SIZE = 5
    return config


@pytest.mark.asyncio
async def test_async_init_wires_services(config: Config, tmp_path: Path) -> None:
    supplier = EnvCredentialSupplier(environ={"GEMINI_API_OAUTH": "token"})
    shared = SharedData(config, supplier)

    await shared.async_init()
    try:
        assert shared.analysis_cache.max_size == 5
        assert shared.translation_cache.is_initialized
        assert shared.trans_manager.engine.engine_name == "Google Translate (gtx)"
        # zhipu_ai has no token, so the first usable provider is chosen
        assert shared.registry.current_provider_id == "gemini"
        assert shared.analysis_manager.registry is shared.registry
        assert (tmp_path / config.ANALYSIS.PROMPT_CONFIG_FILE).exists()
    finally:
        await shared.close()

    assert shared.http.closed
    assert not shared.analysis_cache.is_initialized


@pytest.mark.asyncio
async def test_translation_cache_is_persisted_on_close(config: Config, tmp_path: Path) -> None:
    shared = SharedData(config, EnvCredentialSupplier(environ={}))
    await shared.async_init()
    await shared.translation_cache.put("auto|zh|cat", "猫")

    await shared.close()

    saved = json.loads((tmp_path / config.TRANSLATION.CACHE_FILE).read_text(encoding="utf-8"))
    assert saved["auto|zh|cat"]["result"] == "猫"
