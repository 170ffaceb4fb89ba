"""Models for analysis providers.

``ProviderConfig`` is the metadata snapshot handed out by the credential supplier.
The remaining classes are the JSON payloads exchanged with the two provider wire formats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from dataclasses_json import DataClassJsonMixin, LetterCase, config, dataclass_json

__all__: list[str] = [
    "ApiErrorBody",
    "ChatChoice",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GeminiCandidate",
    "GeminiContent",
    "GeminiPart",
    "GenerationConfig",
    "ProviderConfig",
    "WireKind",
]


class WireKind(StrEnum):
    """Request/response shape spoken by a provider."""

    CHAT_COMPLETION = "chat_completion"
    GENERATE_CONTENT = "generate_content"


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable snapshot of one provider's settings.

    Attributes:
        id (str): Provider key (e.g. ``zhipu_ai``).
        display_name (str): Human-readable name.
        endpoint_url (str): Request URL.
        auth_token (str): API token; empty when none is configured.
        model (str): Model name sent with chat-completion requests.
        enabled (bool): Whether the provider may be selected.
        kind (WireKind): Wire format used for requests and responses.
        temperature (float): Sampling temperature.
        max_tokens (int): Output token limit.
    """

    id: str
    display_name: str
    endpoint_url: str
    auth_token: str = ""
    model: str = ""
    enabled: bool = True
    kind: WireKind = WireKind.CHAT_COMPLETION
    temperature: float = 0.7
    max_tokens: int = 2000

    @property
    def has_credential(self) -> bool:
        return bool(self.auth_token.strip())

    def __repr__(self) -> str:
        # Keep the token out of logs
        return (
            f"ProviderConfig(id={self.id!r}, display_name={self.display_name!r}, endpoint_url={self.endpoint_url!r}, "
            f"model={self.model!r}, enabled={self.enabled}, kind={self.kind.value!r}, "
            f"has_credential={self.has_credential})"
        )


@dataclass
class ApiErrorBody(DataClassJsonMixin):
    """Top-level ``error`` object returned by a provider."""

    code: int | str | None = None
    message: str = ""
    status: str | None = None


@dataclass
class ChatMessage(DataClassJsonMixin):
    role: str = "user"
    content: str | None = None


@dataclass
class ChatCompletionRequest(DataClassJsonMixin):
    model: str
    messages: list[ChatMessage]
    temperature: float
    max_tokens: int


@dataclass
class ChatChoice(DataClassJsonMixin):
    message: ChatMessage | None = None
    finish_reason: str | None = None


@dataclass
class ChatCompletionResponse(DataClassJsonMixin):
    choices: list[ChatChoice] = field(default_factory=list)
    error: ApiErrorBody | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GeminiPart(DataClassJsonMixin):
    text: str | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GeminiContent(DataClassJsonMixin):
    parts: list[GeminiPart] = field(default_factory=list)
    role: str | None = field(default=None, metadata=config(exclude=lambda value: value is None))


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GenerationConfig(DataClassJsonMixin):
    temperature: float
    max_output_tokens: int


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GenerateContentRequest(DataClassJsonMixin):
    contents: list[GeminiContent]
    generation_config: GenerationConfig


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GeminiCandidate(DataClassJsonMixin):
    content: GeminiContent | None = None
    finish_reason: str | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class GenerateContentResponse(DataClassJsonMixin):
    candidates: list[GeminiCandidate] = field(default_factory=list)
    error: ApiErrorBody | None = None
