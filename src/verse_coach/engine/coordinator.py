"""Debounced, epoch-stamped dispatch of oracle requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from verse_coach.clients.oracle_client import OracleClient
from verse_coach.engine.scheduler import Scheduler
from verse_coach.engine.state import Channel
from verse_coach.models.oracle import OracleErrorKind, OracleRequest, OracleResult

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, OracleResult], None]
RequestFactory = Callable[[], "OracleRequest | None"]


class RequestCoordinator:
    """Runs oracle calls per channel and reports results with their capture epoch.

    The coordinator never decides staleness itself: the callback receives the
    epoch captured when the request was scheduled and compares it with the
    session's current one. Oracle failures are delivered as error results.
    """

    def __init__(
        self,
        oracle: OracleClient,
        scheduler: Scheduler,
        current_epoch: Callable[[], int],
    ):
        self.oracle = oracle
        self.scheduler = scheduler
        self._current_epoch = current_epoch
        self._inflight: set[asyncio.Task] = set()

    def schedule(
        self,
        channel: Channel,
        build_request: RequestFactory,
        delay_ms: int,
        on_result: ResultCallback,
    ) -> None:
        """Debounce: replace the channel's pending timer with a new trailing call.

        ``build_request`` runs when the timer fires and may return ``None`` to
        skip the call.
        """
        epoch = self._current_epoch()

        def fire() -> None:
            if self._current_epoch() != epoch:
                logger.debug("Skipping %s timer captured at stale epoch %d", channel.value, epoch)
                return
            request = build_request()
            if request is None:
                return
            self._launch(channel, epoch, request, on_result)

        self.scheduler.schedule(channel.value, delay_ms, fire)

    def submit(
        self,
        channel: Channel,
        request: OracleRequest,
        on_result: ResultCallback,
    ) -> asyncio.Task:
        """Start a call right away, superseding any pending timer on the channel."""
        self.scheduler.cancel(channel.value)
        return self._launch(channel, self._current_epoch(), request, on_result)

    def cancel(self, channel: Channel) -> bool:
        return self.scheduler.cancel(channel.value)

    def pending(self, channel: Channel) -> bool:
        return self.scheduler.pending(channel.value)

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    async def drain(self) -> None:
        """Wait until every in-flight call (including ones started meanwhile) resolved."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def _launch(
        self,
        channel: Channel,
        epoch: int,
        request: OracleRequest,
        on_result: ResultCallback,
    ) -> asyncio.Task:
        logger.debug("Oracle call on %s channel (epoch %d, scope %s)", channel.value, epoch, request.scope.value)
        task = asyncio.ensure_future(self._run(epoch, request, on_result))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _run(self, epoch: int, request: OracleRequest, on_result: ResultCallback) -> None:
        result = await self._call(request)
        on_result(epoch, result)

    async def _call(self, request: OracleRequest) -> OracleResult:
        try:
            return await self.oracle.generate(request)
        except Exception as exc:
            logger.error("Oracle call failed unexpectedly", exc_info=True)
            return OracleResult.failure(OracleErrorKind.NETWORK, str(exc))
