"""Provider metadata and credential supply.

Tokens come from ``{PROVIDER_KEY}_API_OAUTH`` environment variables, combined with built-in
endpoint and model metadata. The optional ``ai_api_keys.json`` file adds providers, or fills
in providers whose token is missing from the environment::

    {"ai_providers": {"zhipu_ai": {"name": "Zhipu AI", "api_key": "...", "api_url": "...",
                                   "model": "glm-4", "enabled": true, "kind": "chat_completion"}}}
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Final

from models.provider_models import ProviderConfig, WireKind
from utils.file_utils import FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

__all__: list[str] = ["CredentialSupplier", "EnvCredentialSupplier"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ENV_SUFFIX: Final[str] = "_API_OAUTH"


class CredentialSupplier(ABC):
    """Source of provider metadata and tokens."""

    @abstractmethod
    def provider_ids(self) -> list[str]:
        """Return every known provider key, in display order."""
        raise NotImplementedError

    @abstractmethod
    def get(self, provider_id: str) -> ProviderConfig | None:
        """Return a fresh snapshot for ``provider_id``, or None if it is unknown."""
        raise NotImplementedError


class EnvCredentialSupplier(CredentialSupplier):
    """Environment variables first, fallback JSON file second.

    Attributes:
        BUILTIN_PROVIDERS (ClassVar[dict[str, ProviderConfig]]): Metadata for the providers the
            application knows about; their tokens are empty until supplied.
    """

    BUILTIN_PROVIDERS: ClassVar[dict[str, ProviderConfig]] = {
        "zhipu_ai": ProviderConfig(
            id="zhipu_ai",
            display_name="Zhipu AI",
            endpoint_url="https://open.bigmodel.cn/api/paas/v4/chat/completions",
            model="glm-4",
            kind=WireKind.CHAT_COMPLETION,
            temperature=0.7,
            max_tokens=2000,
        ),
        "gemini": ProviderConfig(
            id="gemini",
            display_name="Google Gemini",
            endpoint_url="https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash-exp:generateContent",
            kind=WireKind.GENERATE_CONTENT,
            temperature=0.7,
            max_tokens=4000,
        ),
    }

    def __init__(self, fallback_file: str | Path | None = None, environ: Mapping[str, str] | None = None) -> None:
        """Load provider settings.

        Args:
            fallback_file (str | Path | None): Path of the ``ai_api_keys.json`` fallback file.
            environ (Mapping[str, str] | None): Environment to read tokens from. Defaults to ``os.environ``.
        """
        self._environ: Mapping[str, str] = os.environ if environ is None else environ
        self._fallback_file: Path | None = Path(fallback_file) if fallback_file is not None else None
        self._providers: dict[str, ProviderConfig] = {}
        self.reload()

    @staticmethod
    def env_name(provider_id: str) -> str:
        return f"{provider_id.upper()}{ENV_SUFFIX}"

    def reload(self) -> None:
        providers: dict[str, ProviderConfig] = {}
        for provider_id, meta in self.BUILTIN_PROVIDERS.items():
            token: str = self._environ.get(self.env_name(provider_id), "").strip()
            providers[provider_id] = replace(meta, auth_token=token)

        for provider_id, fallback in self._load_fallback().items():
            current: ProviderConfig | None = providers.get(provider_id)
            if current is None:
                providers[provider_id] = fallback
            elif not current.has_credential and fallback.has_credential:
                providers[provider_id] = replace(current, auth_token=fallback.auth_token, enabled=fallback.enabled)
                logger.debug("Token for '%s' taken from the fallback file", provider_id)

        self._providers = providers
        logger.info(
            "Providers loaded: %s", {key: value.has_credential for key, value in self._providers.items()}
        )

    def provider_ids(self) -> list[str]:
        return list(self._providers)

    def get(self, provider_id: str) -> ProviderConfig | None:
        return self._providers.get(provider_id)

    def _load_fallback(self) -> dict[str, ProviderConfig]:
        if self._fallback_file is None:
            return {}
        try:
            data: Any = FileUtils.read_json(self._fallback_file)
        except FileNotFoundError:
            logger.debug("No provider fallback file at '%s'", self._fallback_file)
            return {}
        except FileUtilsError as err:
            logger.warning("Ignoring provider fallback file: %s", err)
            return {}

        section: Any = data.get("ai_providers") if isinstance(data, dict) else None
        if not isinstance(section, dict):
            logger.warning("Provider fallback file has no 'ai_providers' object: '%s'", self._fallback_file)
            return {}

        result: dict[str, ProviderConfig] = {}
        for provider_id, entry in section.items():
            if not isinstance(entry, dict):
                logger.warning("Skipping malformed provider entry '%s'", provider_id)
                continue
            try:
                result[provider_id] = self._from_fallback_entry(provider_id, entry)
            except (TypeError, ValueError) as err:
                logger.warning("Skipping provider entry '%s': %s", provider_id, err)
        return result

    def _from_fallback_entry(self, provider_id: str, entry: dict[str, Any]) -> ProviderConfig:
        builtin: ProviderConfig | None = self.BUILTIN_PROVIDERS.get(provider_id)
        default_kind: WireKind = builtin.kind if builtin is not None else WireKind.CHAT_COMPLETION
        url: str = str(entry.get("api_url") or (builtin.endpoint_url if builtin is not None else ""))
        if not url:
            msg: str = "missing 'api_url'"
            raise ValueError(msg)
        return ProviderConfig(
            id=provider_id,
            display_name=str(entry.get("name") or (builtin.display_name if builtin is not None else provider_id)),
            endpoint_url=url,
            auth_token=str(entry.get("api_key") or "").strip(),
            model=str(entry.get("model") or (builtin.model if builtin is not None else "")),
            enabled=bool(entry.get("enabled", True)),
            kind=WireKind(entry.get("kind") or default_kind),
            temperature=float(entry.get("temperature", builtin.temperature if builtin is not None else 0.7)),
            max_tokens=int(entry.get("max_tokens", builtin.max_tokens if builtin is not None else 2000)),
        )
