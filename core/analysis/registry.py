"""Provider registry: selection state, wire request building and response normalization.

Every public operation returns a canonical result instead of raising.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.analysis.interface import (
    AnalysisRequest,
    CanonicalResult,
    Err,
    ErrorKind,
    Ok,
    ProviderInterface,
    WireRequest,
)
from core.analysis.providers import ChatCompletionProvider, GeminiProvider  # noqa: F401
from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

    from core.analysis.credentials import CredentialSupplier
    from core.analysis.prompt import PromptConfigManager
    from handlers.async_comm import AsyncHttp, RawResponse
    from models.provider_models import ProviderConfig, WireKind

    type ProviderChangedCallback = Callable[[ProviderChangedEvent], Awaitable[None] | None]

__all__: list[str] = ["ProviderChangedEvent", "ProviderRegistry"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass(frozen=True)
class ProviderChangedEvent:
    """Broadcast after the current provider was switched."""

    provider_id: str
    display_name: str
    previous_id: str | None = None


class ProviderRegistry:
    """Knows the providers, which one is selected, and how to talk to each of them."""

    def __init__(
        self,
        supplier: CredentialSupplier,
        prompts: PromptConfigManager,
        http: AsyncHttp | None = None,
        *,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the registry.

        Args:
            supplier (CredentialSupplier): Provider metadata and tokens.
            prompts (PromptConfigManager): Renders prompts for requests.
            http (AsyncHttp | None): Transport used by ``execute``.
            timeout (float): Total timeout for one provider call, in seconds.
        """
        self.supplier: CredentialSupplier = supplier
        self.prompts: PromptConfigManager = prompts
        self.http: AsyncHttp | None = http
        self.timeout: float = timeout
        self._adapters: dict[WireKind, ProviderInterface] = {
            kind: adapter_cls() for kind, adapter_cls in ProviderInterface.registered.items()
        }
        self._current_id: str | None = None
        self._subscribers: list[ProviderChangedCallback] = []
        self._notify_tasks: set[asyncio.Task[Any]] = set()

    @property
    def provider_ids(self) -> list[str]:
        return self.supplier.provider_ids()

    @property
    def current_provider_id(self) -> str | None:
        return self._current_id

    def current_provider(self) -> ProviderConfig | None:
        return self.supplier.get(self._current_id) if self._current_id is not None else None

    def available_providers(self) -> list[ProviderConfig]:
        """Return the providers that are enabled and have a token."""
        result: list[ProviderConfig] = []
        for provider_id in self.provider_ids:
            config: ProviderConfig | None = self.supplier.get(provider_id)
            if config is not None and self._validate(config) is None:
                result.append(config)
        return result

    def initialize(self, *preferred_ids: str | None) -> str | None:
        """Pick the initial provider without notifying subscribers.

        Args:
            *preferred_ids (str | None): Candidates in priority order, e.g. the persisted default
                then the configured default. The first available provider is used otherwise.

        Returns:
            str | None: The selected provider id, or None if no provider is usable.
        """
        available: list[str] = [config.id for config in self.available_providers()]
        for candidate in preferred_ids:
            if candidate and candidate in available:
                self._current_id = candidate
                break
        else:
            self._current_id = available[0] if available else None

        if self._current_id is None:
            logger.warning("No analysis provider has a credential configured")
        else:
            logger.info("Current analysis provider: '%s'", self._current_id)
        return self._current_id

    def subscribe(self, callback: ProviderChangedCallback) -> None:
        self._subscribers.append(callback)

    def set_current_provider(self, provider_id: str) -> CanonicalResult:
        """Switch the current provider.

        The selection only changes when the provider is registered, enabled and has a token.
        Subscribers are notified without waiting for them.

        Returns:
            CanonicalResult: ``Ok(provider_id)`` on success, otherwise the reason as ``Err``.
        """
        config: ProviderConfig | None = self.supplier.get(provider_id)
        if config is None:
            logger.warning("Unknown provider: '%s'", provider_id)
            return Err(ErrorKind.PROVIDER_NOT_SUPPORTED, provider_id)
        if (error := self._validate(config)) is not None:
            logger.warning("Provider '%s' cannot be selected: %s", provider_id, error.kind)
            return error

        previous: str | None = self._current_id
        self._current_id = provider_id
        logger.info("Analysis provider switched: '%s' -> '%s'", previous, provider_id)
        if previous != provider_id:
            self._broadcast(ProviderChangedEvent(provider_id, config.display_name, previous))
        return Ok(provider_id)

    def build_request(self, provider_id: str | None, request: AnalysisRequest) -> WireRequest | Err:
        """Render the prompt and serialize it for ``provider_id``."""
        if provider_id is None:
            return Err(ErrorKind.PROVIDER_NOT_SUPPORTED, "no provider selected")
        config: ProviderConfig | None = self.supplier.get(provider_id)
        if config is None:
            return Err(ErrorKind.PROVIDER_NOT_SUPPORTED, provider_id)
        adapter: ProviderInterface | None = self._adapters.get(config.kind)
        if adapter is None:
            return Err(ErrorKind.PROVIDER_NOT_SUPPORTED, f"{provider_id} ({config.kind})")
        if (error := self._validate(config)) is not None:
            return error

        try:
            prompt: str = self.prompts.render(request.kind, request.content, request.target_language)
        except (KeyError, ValueError) as err:
            logger.error("No prompt template for '%s': %s", request.kind, err)
            return Err(ErrorKind.API_ERROR, f"no prompt template for '{request.kind}'")
        return adapter.build_request(config, prompt)

    def parse_response(self, provider_id: str | None, body: bytes, status: int) -> CanonicalResult:
        config: ProviderConfig | None = self.supplier.get(provider_id) if provider_id is not None else None
        adapter: ProviderInterface | None = self._adapters.get(config.kind) if config is not None else None
        if adapter is None:
            return Err(ErrorKind.PROVIDER_NOT_SUPPORTED, str(provider_id))
        try:
            return adapter.parse_response(body, status)
        except (AttributeError, IndexError, KeyError, TypeError, ValueError):
            logger.exception("Provider '%s' response could not be normalized", provider_id)
            return Err(ErrorKind.NO_CONTENT, "response format error")

    async def execute(self, provider_id: str | None, request: AnalysisRequest) -> CanonicalResult:
        """Build the request, send it and normalize the response."""
        wire: WireRequest | Err = self.build_request(provider_id, request)
        if isinstance(wire, Err):
            return wire
        if self.http is None:
            return Err(ErrorKind.NETWORK_ERROR, "no HTTP transport")

        logger.debug("Sending analysis request to '%s': %r", provider_id, wire)
        try:
            response: RawResponse = await self.http.post_raw(
                url=wire.url, body=wire.body, headers=wire.headers, total_timeout=self.timeout
            )
        except AsyncCommTimeoutError as err:
            logger.error("Analysis request to '%s' timed out: %s", provider_id, err)
            return Err(ErrorKind.NETWORK_ERROR, str(err))
        except AsyncCommError as err:
            logger.error("Analysis request to '%s' failed: %s", provider_id, err)
            return Err(ErrorKind.NETWORK_ERROR, str(err))

        logger.debug("Provider '%s' answered with status %s", provider_id, response.status)
        return self.parse_response(provider_id, response.body, response.status)

    @staticmethod
    def _validate(config: ProviderConfig) -> Err | None:
        if not config.enabled:
            return Err(ErrorKind.PROVIDER_NOT_SUPPORTED, f"{config.id} is disabled")
        if not config.has_credential:
            return Err(ErrorKind.INVALID_CREDENTIAL, config.id)
        return None

    def _broadcast(self, event: ProviderChangedEvent) -> None:
        for callback in list(self._subscribers):
            try:
                outcome: Awaitable[None] | None = callback(event)
            except Exception:
                logger.exception("Provider change subscriber failed")
                continue
            if inspect.isawaitable(outcome):
                self._schedule_notification(outcome)

    def _schedule_notification(self, outcome: Awaitable[None]) -> None:
        try:
            loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        except RuntimeError:
            # Called from synchronous code: finish the notification before returning
            if not inspect.iscoroutine(outcome):
                logger.warning("Provider change notification dropped: no running event loop")
                return
            try:
                asyncio.run(outcome)
            except Exception:
                logger.exception("Provider change subscriber failed")
            return
        task: asyncio.Task[Any] = loop.create_task(_await(outcome))
        self._notify_tasks.add(task)
        task.add_done_callback(self._on_notify_done)

    def _on_notify_done(self, task: asyncio.Task[Any]) -> None:
        self._notify_tasks.discard(task)
        if not task.cancelled() and (err := task.exception()) is not None:
            logger.error("Provider change subscriber failed: %s", err)

    async def drain_notifications(self) -> None:
        """Wait for pending subscriber notifications."""
        if self._notify_tasks:
            await asyncio.gather(*self._notify_tasks, return_exceptions=True)


async def _await(outcome: Awaitable[None]) -> None:
    await outcome
