"""Tests for ProviderRegistry."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, cast
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.analysis.credentials import CredentialSupplier
from core.analysis.interface import AnalysisKind, AnalysisRequest, Err, ErrorKind, Ok, WireRequest
from core.analysis.prompt import PromptConfigManager
from core.analysis.registry import ProviderChangedEvent, ProviderRegistry
from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, RawResponse
from models.provider_models import ProviderConfig, WireKind

if TYPE_CHECKING:
    from pathlib import Path

    from handlers.async_comm import AsyncHttp


class StaticSupplier(CredentialSupplier):
    def __init__(self, *configs: ProviderConfig) -> None:
        self.configs: dict[str, ProviderConfig] = {config.id: config for config in configs}

    def provider_ids(self) -> list[str]:
        return list(self.configs)

    def get(self, provider_id: str) -> ProviderConfig | None:
        return self.configs.get(provider_id)


ZHIPU = ProviderConfig(
    id="zhipu_ai",
    display_name="Zhipu AI",
    endpoint_url="https://open.bigmodel.cn/api/paas/v4/chat/completions",
    auth_token="zhipu-token",
    model="glm-4",
    kind=WireKind.CHAT_COMPLETION,
)
GEMINI = ProviderConfig(
    id="gemini",
    display_name="Google Gemini",
    endpoint_url="https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash-exp:generateContent",
    auth_token="gemini-token",
    kind=WireKind.GENERATE_CONTENT,
    max_tokens=4000,
)
NO_TOKEN = ProviderConfig(id="no_token", display_name="No Token", endpoint_url="https://example.com")
DISABLED = ProviderConfig(
    id="disabled", display_name="Disabled", endpoint_url="https://example.com", auth_token="t", enabled=False
)

REQUEST = AnalysisRequest(content="cat", kind=AnalysisKind.WORD, target_language="en")


@pytest.fixture
def prompts(tmp_path: Path) -> PromptConfigManager:
    manager = PromptConfigManager(tmp_path / "ai_prompt_config.json", None)
    manager.load()
    return manager


@pytest.fixture
def http() -> MagicMock:
    mock = MagicMock()
    mock.post_raw = AsyncMock()
    return mock


@pytest.fixture
def registry(prompts: PromptConfigManager, http: MagicMock) -> ProviderRegistry:
    supplier = StaticSupplier(ZHIPU, GEMINI, NO_TOKEN, DISABLED)
    return ProviderRegistry(supplier, prompts, cast("AsyncHttp", http), timeout=5.0)


def test_available_providers_need_token_and_enabled(registry: ProviderRegistry) -> None:
    assert registry.provider_ids == ["zhipu_ai", "gemini", "no_token", "disabled"]
    assert [config.id for config in registry.available_providers()] == ["zhipu_ai", "gemini"]


def test_initialize_prefers_candidates_in_order(registry: ProviderRegistry) -> None:
    assert registry.initialize("no_token", "gemini", "zhipu_ai") == "gemini"
    assert registry.current_provider_id == "gemini"


def test_initialize_falls_back_to_first_available(registry: ProviderRegistry) -> None:
    assert registry.initialize("unknown", None) == "zhipu_ai"


def test_initialize_without_usable_provider(prompts: PromptConfigManager) -> None:
    registry = ProviderRegistry(StaticSupplier(NO_TOKEN), prompts)

    assert registry.initialize("no_token") is None


def test_build_request_renders_prompt(registry: ProviderRegistry) -> None:
    wire = registry.build_request("zhipu_ai", REQUEST)

    assert isinstance(wire, WireRequest)
    content: str = json.loads(wire.body)["messages"][0]["content"]
    assert "cat" in content
    assert "English" in content


@pytest.mark.parametrize(
    ("provider_id", "kind"),
    [
        ("unknown", ErrorKind.PROVIDER_NOT_SUPPORTED),
        (None, ErrorKind.PROVIDER_NOT_SUPPORTED),
        ("disabled", ErrorKind.PROVIDER_NOT_SUPPORTED),
        ("no_token", ErrorKind.INVALID_CREDENTIAL),
    ],
)
def test_build_request_errors(registry: ProviderRegistry, provider_id: str | None, kind: ErrorKind) -> None:
    result = registry.build_request(provider_id, REQUEST)

    assert isinstance(result, Err)
    assert result.kind is kind


def test_parse_response_unknown_provider(registry: ProviderRegistry) -> None:
    result = registry.parse_response("unknown", b"{}", 200)

    assert result == Err(ErrorKind.PROVIDER_NOT_SUPPORTED, "unknown")


def test_parse_response_dispatches_by_kind(registry: ProviderRegistry) -> None:
    body: bytes = json.dumps({"candidates": [{"content": {"parts": [{"text": "gemini answer"}]}}]}).encode()

    assert registry.parse_response("gemini", body, 200) == Ok("gemini answer")


@pytest.mark.asyncio
async def test_execute_sends_and_parses(registry: ProviderRegistry, http: MagicMock) -> None:
    body: bytes = json.dumps({"choices": [{"message": {"content": "analysis"}}]}).encode()
    http.post_raw.return_value = RawResponse(status=200, body=body, content_type="application/json")

    result = await registry.execute("zhipu_ai", REQUEST)

    assert result == Ok("analysis")
    kwargs = http.post_raw.await_args.kwargs
    assert kwargs["url"] == ZHIPU.endpoint_url
    assert kwargs["headers"]["Authorization"] == "Bearer zhipu-token"
    assert kwargs["total_timeout"] == 5.0


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [AsyncCommError("refused"), AsyncCommTimeoutError("slow")])
async def test_execute_maps_transport_failure(registry: ProviderRegistry, http: MagicMock, error: Exception) -> None:
    http.post_raw.side_effect = error

    result = await registry.execute("zhipu_ai", REQUEST)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.NETWORK_ERROR


@pytest.mark.asyncio
async def test_execute_without_credential_does_not_send(registry: ProviderRegistry, http: MagicMock) -> None:
    result = await registry.execute("no_token", REQUEST)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.INVALID_CREDENTIAL
    http.post_raw.assert_not_awaited()


@pytest.mark.asyncio
async def test_set_current_provider_broadcasts(registry: ProviderRegistry) -> None:
    registry.initialize("zhipu_ai")
    events: list[ProviderChangedEvent] = []
    sync_events: list[ProviderChangedEvent] = []

    async def on_change(event: ProviderChangedEvent) -> None:
        events.append(event)

    registry.subscribe(on_change)
    registry.subscribe(sync_events.append)

    assert registry.set_current_provider("gemini") == Ok("gemini")
    await registry.drain_notifications()

    expected = ProviderChangedEvent(provider_id="gemini", display_name="Google Gemini", previous_id="zhipu_ai")
    assert events == [expected]
    assert sync_events == [expected]
    assert registry.current_provider_id == "gemini"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("provider_id", "kind"),
    [
        ("unknown", ErrorKind.PROVIDER_NOT_SUPPORTED),
        ("no_token", ErrorKind.INVALID_CREDENTIAL),
        ("disabled", ErrorKind.PROVIDER_NOT_SUPPORTED),
    ],
)
async def test_set_current_provider_rejects_unusable(
    registry: ProviderRegistry, provider_id: str, kind: ErrorKind
) -> None:
    registry.initialize("zhipu_ai")
    events: list[ProviderChangedEvent] = []
    registry.subscribe(events.append)

    result = registry.set_current_provider(provider_id)

    assert isinstance(result, Err)
    assert result.kind is kind
    assert registry.current_provider_id == "zhipu_ai"
    assert events == []


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_switch(registry: ProviderRegistry) -> None:
    registry.initialize("zhipu_ai")

    async def broken(event: ProviderChangedEvent) -> None:
        _ = event
        msg = "subscriber failed"
        raise RuntimeError(msg)

    registry.subscribe(broken)

    assert registry.set_current_provider("gemini") == Ok("gemini")
    await registry.drain_notifications()
    assert registry.current_provider_id == "gemini"


def test_switch_without_running_loop_completes_async_subscriber(registry: ProviderRegistry) -> None:
    registry.initialize("zhipu_ai")
    events: list[ProviderChangedEvent] = []

    async def on_change(event: ProviderChangedEvent) -> None:
        events.append(event)

    registry.subscribe(on_change)

    assert registry.set_current_provider("gemini") == Ok("gemini")
    assert [event.provider_id for event in events] == ["gemini"]


def test_switch_without_running_loop_logs_failing_subscriber(
    registry: ProviderRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    registry.initialize("zhipu_ai")

    async def broken(event: ProviderChangedEvent) -> None:
        _ = event
        msg = "subscriber failed"
        raise RuntimeError(msg)

    registry.subscribe(broken)

    assert registry.set_current_provider("gemini") == Ok("gemini")
    assert registry.current_provider_id == "gemini"
    assert any("subscriber failed" in rec.getMessage() for rec in caplog.records)


def test_parse_response_contains_adapter_failure(registry: ProviderRegistry, monkeypatch: pytest.MonkeyPatch) -> None:
    adapter = registry._adapters[WireKind.GENERATE_CONTENT]
    monkeypatch.setattr(adapter, "parse_response", MagicMock(side_effect=AttributeError("parts")))

    result = registry.parse_response("gemini", b"{}", 200)

    assert result == Err(ErrorKind.NO_CONTENT, "response format error")


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_every_error_kind_unwraps_to_matching_exception(kind: ErrorKind) -> None:
    error = Err(kind, "detail").to_exception()

    assert error.kind is kind
    assert error.message == "detail"


def test_shape_errors_have_a_single_kind() -> None:
    assert "INVALID_RESPONSE" not in ErrorKind.__members__
