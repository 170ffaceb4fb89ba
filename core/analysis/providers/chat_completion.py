"""Adapter for OpenAI-style ``/chat/completions`` providers (Zhipu AI and compatibles)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from core.analysis.interface import CanonicalResult, Err, ErrorKind, Ok, ProviderInterface, WireRequest
from models.provider_models import (
    ApiErrorBody,
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    WireKind,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.provider_models import ProviderConfig

__all__: list[str] = ["ChatCompletionProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ChatCompletionProvider(ProviderInterface):
    """Single user message in, ``choices[0].message.content`` out."""

    @staticmethod
    def fetch_wire_kind() -> WireKind:
        return WireKind.CHAT_COMPLETION

    def build_request(self, config: ProviderConfig, prompt: str) -> WireRequest:
        payload = ChatCompletionRequest(
            model=config.model,
            messages=[ChatMessage(role="user", content=prompt)],
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.auth_token}",
        }
        body: bytes = json.dumps(payload.to_dict(), ensure_ascii=False).encode("utf-8")
        return WireRequest(url=config.endpoint_url, body=body, headers=headers)

    def parse_response(self, body: bytes, status: int) -> CanonicalResult:
        try:
            data: Any = json.loads(body)
            if not isinstance(data, dict):
                raise TypeError(type(data).__name__)
            response: ChatCompletionResponse = ChatCompletionResponse.from_dict(data, infer_missing=True)
        except (ValueError, TypeError, KeyError, AttributeError) as err:
            logger.warning("Chat completion response could not be decoded: %s", err)
            if not self.is_success(status):
                return self.status_error(status)
            return Err(ErrorKind.NO_CONTENT, "response format error")

        if isinstance(response.error, ApiErrorBody):
            message: str = str(response.error.message or f"error code {response.error.code}")
            logger.warning("Chat completion provider returned an error: %s", message)
            return Err(ErrorKind.API_ERROR, message)

        if not self.is_success(status):
            return self.status_error(status)

        choice: Any = response.choices[0] if isinstance(response.choices, list) and response.choices else None
        # Null or scalar elements survive decoding unchanged
        if not isinstance(choice, ChatChoice) or not isinstance(choice.message, ChatMessage):
            return Err(ErrorKind.NO_CONTENT)
        content: Any = choice.message.content
        if not isinstance(content, str) or not content.strip():
            return Err(ErrorKind.NO_CONTENT)
        if choice.finish_reason == "length":
            logger.info("Chat completion output was truncated at the token limit")
        return Ok(content)
