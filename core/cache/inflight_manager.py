from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable


__all__: list[str] = [
    "InFlightManager",
    "InFlightRequest",
    "InFlightTimeoutError",
    "Lease",
    "RequestCancelledError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class RequestCancelledError(Exception):
    """The computation was superseded in its slot or the manager was torn down."""


class InFlightTimeoutError(TimeoutError):
    """Waiting on another caller's computation took too long."""


@dataclass
class InFlightRequest:
    """Bookkeeping for one unresolved computation.

    Attributes:
        key (str): Request key.
        future (asyncio.Future[Any]): Completed with the outcome shared by every caller.
        created_at (float): Monotonic registration time.
        slot (str | None): Logical slot the request occupies.
        task (asyncio.Task[Any] | None): Task running the computation, once started.
    """

    key: str
    future: asyncio.Future[Any]
    created_at: float = field(default_factory=time.monotonic)
    slot: str | None = None
    task: asyncio.Task[Any] | None = None


class Lease:
    """Handle returned by ``InFlightManager.acquire``.

    The owner runs the computation with ``run``; every other caller awaits the owner's outcome
    with ``wait``.
    """

    def __init__(self, manager: InFlightManager, key: str, request: InFlightRequest | None, *, is_owner: bool) -> None:
        self._manager: InFlightManager = manager
        self._key: str = key
        self._request: InFlightRequest | None = request
        self._is_owner: bool = is_owner

    @property
    def key(self) -> str:
        return self._key

    @property
    def is_owner(self) -> bool:
        return self._is_owner

    @property
    def is_tracked(self) -> bool:
        return self._request is not None

    async def run[T](self, factory: Callable[[], Awaitable[T]]) -> T:
        """Run the computation and publish its outcome to attached callers.

        The computation runs in its own task so that superseding the slot can cancel it without
        cancelling the caller.

        Args:
            factory (Callable[[], Awaitable[T]]): Produces the awaitable doing the work.

        Returns:
            T: The computed value.

        Raises:
            RequestCancelledError: If a newer request took over the slot while computing.
            asyncio.CancelledError: If the caller itself was cancelled.
            Exception: Whatever the computation raised, shared with attached callers.
        """
        if not self._is_owner:
            msg = "Only the owning lease may run the computation"
            raise RuntimeError(msg)

        request: InFlightRequest | None = self._request
        if request is None:
            return await factory()

        task: asyncio.Task[T] = asyncio.ensure_future(factory())
        request.task = task
        try:
            result: T = await task
        except asyncio.CancelledError:
            current: asyncio.Task[Any] | None = asyncio.current_task()
            outer_cancelled: bool = current is not None and current.cancelling() > 0
            if not outer_cancelled and request.future.done() and not request.future.cancelled():
                superseded: BaseException | None = request.future.exception()
                if isinstance(superseded, RequestCancelledError):
                    raise superseded from None
            await self._manager._finish(  # noqa: SLF001
                request, error=RequestCancelledError(f"Request cancelled: {StringUtils.preview(self._key)}")
            )
            raise
        except Exception as err:
            await self._manager._finish(request, error=err)  # noqa: SLF001
            raise
        await self._manager._finish(request, result=result)  # noqa: SLF001
        return result

    async def wait(self) -> Any:
        """Wait for the owner's outcome.

        Returns:
            Any: The owner's value.

        Raises:
            InFlightTimeoutError: If the owner does not finish within ``INFLIGHT_TIMEOUT_SEC``;
                the stale record is dropped.
            Exception: The owner's exception instance.
        """
        request: InFlightRequest | None = self._request
        if self._is_owner or request is None:
            msg = "Only attached leases may wait"
            raise RuntimeError(msg)

        try:
            return await asyncio.wait_for(asyncio.shield(request.future), timeout=self._manager.wait_timeout)
        except TimeoutError:
            logger.warning("In-flight wait timed out for key: %s", StringUtils.preview(self._key))
            await self._manager._drop_stale(request)  # noqa: SLF001
            msg: str = f"In-flight request timed out for key: {StringUtils.preview(self._key)}"
            raise InFlightTimeoutError(msg) from None


class InFlightManager:
    """Single-flight coordinator: at most one computation per key is in flight.

    Callers acquire a lease for a key. The first caller owns the computation; callers arriving
    while it is unresolved attach to it and observe the same value or the same exception.
    The record is removed when the computation resolves, so later callers start afresh.

    A request may occupy a named slot. Acquiring a different key in an occupied slot cancels the
    previous computation; its attached callers receive ``RequestCancelledError``.

    Before ``component_load`` (and after ``component_teardown``) every caller gets an untracked
    owner lease and nothing is deduplicated.

    Attributes:
        INFLIGHT_TIMEOUT_SEC (float): Default upper bound for attached callers' waits.
    """

    INFLIGHT_TIMEOUT_SEC: ClassVar[float] = 90.0

    def __init__(self, name: str = "inflight", *, wait_timeout: float | None = None) -> None:
        self.name: str = name
        self.wait_timeout: float = wait_timeout if wait_timeout is not None else self.INFLIGHT_TIMEOUT_SEC
        self._inflight: dict[str, InFlightRequest] = {}
        self._slots: dict[str, str] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._is_initialized: bool = False

    async def component_load(self) -> None:
        self._is_initialized = True
        logger.info("InFlightManager '%s' initialized successfully", self.name)

    async def component_teardown(self) -> None:
        """Cancel every pending computation and clear the state."""
        self._is_initialized = False
        async with self._lock:
            for request in list(self._inflight.values()):
                self._cancel_locked(request, "In-flight manager shut down")
            self._inflight.clear()
            self._slots.clear()
        logger.info("InFlightManager '%s' torn down and in-flight state cleared", self.name)

    def __len__(self) -> int:
        return len(self._inflight)

    def is_inflight(self, key: str) -> bool:
        return key in self._inflight

    async def acquire(self, key: str, *, slot: str | None = None) -> Lease:
        """Obtain a lease for ``key``.

        Args:
            key (str): Request key.
            slot (str | None): Logical slot. A pending request for a different key in the same
                slot is cancelled.

        Returns:
            Lease: An owner lease if no computation for ``key`` is pending, otherwise an attached lease.
        """
        if not self._is_initialized or not key:
            return Lease(self, key, None, is_owner=True)

        async with self._lock:
            existing: InFlightRequest | None = self._inflight.get(key)
            if existing is not None and not existing.future.done():
                logger.debug("Attached to in-flight request for key: %s", StringUtils.preview(key))
                return Lease(self, key, existing, is_owner=False)

            if slot is not None:
                previous_key: str | None = self._slots.get(slot)
                previous: InFlightRequest | None = self._inflight.get(previous_key) if previous_key else None
                if previous is not None and previous.key != key:
                    logger.info(
                        "Slot '%s' superseded: cancelling key %s", slot, StringUtils.preview(previous.key)
                    )
                    self._cancel_locked(previous, f"Superseded by a newer request in slot '{slot}'")

            request = InFlightRequest(key=key, future=asyncio.get_running_loop().create_future(), slot=slot)
            self._inflight[key] = request
            if slot is not None:
                self._slots[slot] = key
            logger.debug("Marked in-flight start for key: %s", StringUtils.preview(key))
            return Lease(self, key, request, is_owner=True)

    async def cancel_slot(self, slot: str) -> bool:
        """Cancel the pending computation occupying ``slot``.

        Returns:
            bool: True if a computation was cancelled.
        """
        async with self._lock:
            key: str | None = self._slots.get(slot)
            request: InFlightRequest | None = self._inflight.get(key) if key else None
            if request is None:
                return False
            self._cancel_locked(request, f"Slot '{slot}' cancelled")
            return True

    async def _finish(
        self, request: InFlightRequest, *, result: Any = None, error: BaseException | None = None
    ) -> None:
        async with self._lock:
            self._remove_locked(request)
            if request.future.done():
                return
            if error is not None:
                request.future.set_exception(error)
                # Nobody may be waiting; avoid "exception was never retrieved" noise.
                request.future.exception()
                logger.debug("Set in-flight exception for key: %s", StringUtils.preview(request.key))
            else:
                request.future.set_result(result)
                logger.debug("Set in-flight result for key: %s", StringUtils.preview(request.key))

    async def _drop_stale(self, request: InFlightRequest) -> None:
        async with self._lock:
            self._remove_locked(request)

    def _remove_locked(self, request: InFlightRequest) -> None:
        current: InFlightRequest | None = self._inflight.get(request.key)
        if current is not request:
            # A newer request owns the key (and possibly the slot) now
            return
        del self._inflight[request.key]
        if request.slot is not None and self._slots.get(request.slot) == request.key:
            del self._slots[request.slot]

    def _cancel_locked(self, request: InFlightRequest, reason: str) -> None:
        self._remove_locked(request)
        if not request.future.done():
            request.future.set_exception(RequestCancelledError(reason))
            request.future.exception()
        if request.task is not None and not request.task.done():
            request.task.cancel()
