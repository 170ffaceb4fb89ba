"""Tests for the provider wire-format adapters."""

from __future__ import annotations

import json
from urllib.parse import parse_qs, urlsplit

import pytest

from core.analysis.interface import Err, ErrorKind, Ok, WireRequest
from core.analysis.providers import ChatCompletionProvider, GeminiProvider
from models.provider_models import ProviderConfig, WireKind

ZHIPU = ProviderConfig(
    id="zhipu_ai",
    display_name="Zhipu AI",
    endpoint_url="https://open.bigmodel.cn/api/paas/v4/chat/completions",
    auth_token="secret-token",
    model="glm-4",
    kind=WireKind.CHAT_COMPLETION,
    temperature=0.7,
    max_tokens=2000,
)

GEMINI = ProviderConfig(
    id="gemini",
    display_name="Google Gemini",
    endpoint_url="https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash-exp:generateContent",
    auth_token="gemini key",
    kind=WireKind.GENERATE_CONTENT,
    temperature=0.5,
    max_tokens=4000,
)


def _body(data: object) -> bytes:
    return json.dumps(data).encode("utf-8")


class TestChatCompletionProvider:
    def test_build_request(self) -> None:
        wire: WireRequest = ChatCompletionProvider().build_request(ZHIPU, "解析 cat")

        assert wire.url == ZHIPU.endpoint_url
        assert wire.headers["Authorization"] == "Bearer secret-token"
        assert wire.headers["Content-Type"] == "application/json"
        assert json.loads(wire.body) == {
            "model": "glm-4",
            "messages": [{"role": "user", "content": "解析 cat"}],
            "temperature": 0.7,
            "max_tokens": 2000,
        }
        assert "secret-token" not in repr(wire)

    def test_parse_success(self) -> None:
        body = _body({"choices": [{"message": {"role": "assistant", "content": "answer"}, "finish_reason": "stop"}]})

        assert ChatCompletionProvider().parse_response(body, 200) == Ok("answer")

    def test_parse_api_error(self) -> None:
        body = _body({"error": {"code": "1113", "message": "Insufficient balance"}})

        assert ChatCompletionProvider().parse_response(body, 429) == Err(ErrorKind.API_ERROR, "Insufficient balance")

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            b"[]",
            _body({}),
            _body({"choices": []}),
            _body({"choices": [{"message": {"role": "assistant", "content": ""}}]}),
            _body({"choices": [{"message": None}]}),
            _body({"choices": [None]}),
            _body({"choices": [{"message": "abc"}]}),
            _body({"choices": [{"message": {"content": 5}}]}),
        ],
    )
    def test_parse_no_content(self, body: bytes) -> None:
        result = ChatCompletionProvider().parse_response(body, 200)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.NO_CONTENT

    def test_error_status_without_error_body(self) -> None:
        result = ChatCompletionProvider().parse_response(b"<html>Bad gateway</html>", 502)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.NETWORK_ERROR


class TestGeminiProvider:
    def test_build_request(self) -> None:
        wire: WireRequest = GeminiProvider().build_request(GEMINI, "analyze")

        parts = urlsplit(wire.url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == GEMINI.endpoint_url
        assert parse_qs(parts.query) == {"key": ["gemini key"]}
        assert "Authorization" not in wire.headers
        assert json.loads(wire.body) == {
            "contents": [{"parts": [{"text": "analyze"}]}],
            "generationConfig": {"temperature": 0.5, "maxOutputTokens": 4000},
        }
        assert "key=" not in repr(wire)

    def test_parse_success(self) -> None:
        body = _body({"candidates": [{"content": {"parts": [{"text": "answer"}], "role": "model"}}]})

        assert GeminiProvider().parse_response(body, 200) == Ok("answer")

    def test_max_tokens_still_returns_content(self, caplog: pytest.LogCaptureFixture) -> None:
        body = _body(
            {"candidates": [{"content": {"parts": [{"text": "partial"}]}, "finishReason": "MAX_TOKENS"}]}
        )

        assert GeminiProvider().parse_response(body, 200) == Ok("partial")
        assert any("truncated" in rec.message for rec in caplog.records)

    def test_parse_api_error(self) -> None:
        body = _body({"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}})

        assert GeminiProvider().parse_response(body, 400) == Err(ErrorKind.API_ERROR, "API key not valid")

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            _body({"candidates": []}),
            _body({"candidates": [{"finishReason": "SAFETY"}]}),
            _body({"candidates": [{"content": {"parts": []}}]}),
            _body({"candidates": [{"content": {"parts": [{"text": "  "}]}}]}),
            _body({"candidates": [None]}),
            _body({"candidates": [{"content": "x"}]}),
            _body({"candidates": [{"content": {"parts": [None]}}]}),
        ],
    )
    def test_parse_no_content(self, body: bytes) -> None:
        result = GeminiProvider().parse_response(body, 200)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.NO_CONTENT


MALFORMED_BODIES: list[object] = [
    {"choices": [None]},
    {"choices": "abc"},
    {"choices": [{"message": "abc"}]},
    {"choices": [{"message": {"content": ["x"]}}]},
    {"candidates": [None]},
    {"candidates": "abc"},
    {"candidates": [{"content": "x"}]},
    {"candidates": [{"content": {"parts": "x"}}]},
    {"candidates": [{"content": {"parts": [None]}}]},
    {"candidates": [{"content": {"parts": [{"text": 5}]}}]},
    {"error": "quota"},
    [None],
    None,
    5,
]


@pytest.mark.parametrize("provider", [ChatCompletionProvider(), GeminiProvider()], ids=["chat", "gemini"])
@pytest.mark.parametrize("data", MALFORMED_BODIES)
def test_malformed_success_body_maps_to_no_content(
    provider: ChatCompletionProvider | GeminiProvider, data: object
) -> None:
    result = provider.parse_response(_body(data), 200)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.NO_CONTENT
