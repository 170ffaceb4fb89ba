"""Tests for the keyless Google Translate engine."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, cast
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.trans.engines.google_gtx import GTX_ENDPOINT, GoogleGtxTranslation
from core.trans.interface import InvalidResponseError, TranslationNetworkError
from handlers.async_comm import AsyncCommError, AsyncCommInvalidContentTypeError, AsyncCommTimeoutError

if TYPE_CHECKING:
    from handlers.async_comm import AsyncHttp
    from models.config_models import Config


def _engine(response: Any = None, error: Exception | None = None) -> tuple[GoogleGtxTranslation, MagicMock]:
    http = MagicMock()
    http.get = AsyncMock(return_value=response, side_effect=error)
    config = cast("Config", SimpleNamespace(TRANSLATION=SimpleNamespace(TIMEOUT=12.0)))
    engine = GoogleGtxTranslation()
    engine.initialize(config, cast("AsyncHttp", http))
    return engine, http


def test_engine_is_registered_by_name() -> None:
    assert GoogleGtxTranslation.fetch_engine_name() == "google_gtx"


@pytest.mark.asyncio
async def test_translation_sends_gtx_query() -> None:
    engine, http = _engine([[["猫", "cat", None, None, 10]], None, "en"])

    result = await engine.translation("cat", "zh", "auto")

    assert result.text == "猫"
    assert result.detected_source_lang == "en"
    kwargs = http.get.await_args.kwargs
    assert kwargs["url"] == GTX_ENDPOINT
    assert kwargs["params"] == {"client": "gtx", "sl": "auto", "tl": "zh", "dt": "t", "q": "cat"}
    assert kwargs["total_timeout"] == 12.0
    assert engine.engine_name == "Google Translate (gtx)"


@pytest.mark.asyncio
async def test_missing_source_language_means_auto() -> None:
    engine, http = _engine([[["猫"]]])

    await engine.translation("cat", "zh")

    assert http.get.await_args.kwargs["params"]["sl"] == "auto"


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {},
        [],
        [[]],
        [[[]]],
        [[[""]]],
        [[[None]]],
        "text",
        ["abc"],
    ],
)
def test_parse_response_rejects_unexpected_shapes(payload: Any) -> None:
    with pytest.raises(InvalidResponseError):
        GoogleGtxTranslation.parse_response(payload)


def test_parse_response_uses_first_segment_only() -> None:
    result = GoogleGtxTranslation.parse_response([[["Hallo. ", "Hello. "], ["Welt", "world"]], None, "en"])

    assert result.text == "Hallo. "


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [AsyncCommError("refused"), AsyncCommTimeoutError("slow")])
async def test_transport_failure_maps_to_network_error(error: Exception) -> None:
    engine, _ = _engine(error=error)

    with pytest.raises(TranslationNetworkError):
        await engine.translation("cat", "zh", "auto")


@pytest.mark.asyncio
async def test_undecodable_body_maps_to_invalid_response() -> None:
    engine, _ = _engine(error=AsyncCommInvalidContentTypeError("Unknown Content-Type"))

    with pytest.raises(InvalidResponseError):
        await engine.translation("cat", "zh", "auto")
