"""Adapter for Google Gemini ``generateContent``.

The API key travels in the ``key`` query parameter; requests carry no authorization header.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urlencode

from core.analysis.interface import CanonicalResult, Err, ErrorKind, Ok, ProviderInterface, WireRequest
from models.provider_models import (
    ApiErrorBody,
    GeminiCandidate,
    GeminiContent,
    GeminiPart,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    WireKind,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.provider_models import ProviderConfig

__all__: list[str] = ["GeminiProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

FINISH_REASON_MAX_TOKENS: Final[str] = "MAX_TOKENS"


class GeminiProvider(ProviderInterface):
    @staticmethod
    def fetch_wire_kind() -> WireKind:
        return WireKind.GENERATE_CONTENT

    def build_request(self, config: ProviderConfig, prompt: str) -> WireRequest:
        payload = GenerateContentRequest(
            contents=[GeminiContent(parts=[GeminiPart(text=prompt)])],
            generation_config=GenerationConfig(temperature=config.temperature, max_output_tokens=config.max_tokens),
        )
        separator: str = "&" if "?" in config.endpoint_url else "?"
        url: str = f"{config.endpoint_url}{separator}{urlencode({'key': config.auth_token})}"
        body: bytes = json.dumps(payload.to_dict(), ensure_ascii=False).encode("utf-8")
        return WireRequest(url=url, body=body, headers={"Content-Type": "application/json"})

    def parse_response(self, body: bytes, status: int) -> CanonicalResult:
        try:
            data: Any = json.loads(body)
            if not isinstance(data, dict):
                raise TypeError(type(data).__name__)
            response: GenerateContentResponse = GenerateContentResponse.from_dict(data, infer_missing=True)
        except (ValueError, TypeError, KeyError, AttributeError) as err:
            logger.warning("Gemini response could not be decoded: %s", err)
            if not self.is_success(status):
                return self.status_error(status)
            return Err(ErrorKind.NO_CONTENT, "response format error")

        if isinstance(response.error, ApiErrorBody):
            message: str = str(response.error.message or f"error code {response.error.code}")
            logger.warning("Gemini returned an error: %s", message)
            return Err(ErrorKind.API_ERROR, message)

        if not self.is_success(status):
            return self.status_error(status)

        candidates: Any = response.candidates
        candidate: Any = candidates[0] if isinstance(candidates, list) and candidates else None
        if not isinstance(candidate, GeminiCandidate):
            return Err(ErrorKind.NO_CONTENT)
        if candidate.finish_reason == FINISH_REASON_MAX_TOKENS:
            logger.warning("Gemini output was truncated at the token limit")
        content: Any = candidate.content
        if not isinstance(content, GeminiContent) or not isinstance(content.parts, list) or not content.parts:
            return Err(ErrorKind.NO_CONTENT)
        part: Any = content.parts[0]
        if not isinstance(part, GeminiPart):
            return Err(ErrorKind.NO_CONTENT)
        text: Any = part.text
        if not isinstance(text, str) or not text.strip():
            return Err(ErrorKind.NO_CONTENT)
        return Ok(text)
