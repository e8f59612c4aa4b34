"""Polling loop: periodic collection and push of dynamic sensors."""

import asyncio
from collections.abc import Awaitable, Callable

from desktop_companion.device.state import DeviceState
from desktop_companion.hass_client import HassClientError, WebhookExpired
from desktop_companion.telemetry import (
    POLL_CYCLE_COMPLETED,
    POLL_CYCLE_FAILED,
    POLL_CYCLE_SKIPPED,
    POLLER_STARTED,
    POLLER_STOPPED,
    SENSOR_POLL,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)


class SensorPoller:
    """Background task that pushes dynamic sensors every update interval.

    Each cycle reads the interval and the registered flag afresh. Unregistered
    cycles are skipped. A 410 from the hub demotes the registered flag, which
    stops pushes until a registration succeeds again; any other failure is
    logged and the next cycle sends a fresh snapshot.

    Usage:
        poller = SensorPoller(state)
        await poller.start()  # Runs in background
        # ... later ...
        await poller.stop()
    """

    def __init__(
        self,
        state: DeviceState,
        warmup_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.state = state
        self.warmup_seconds = warmup_seconds
        self._sleep = sleep
        self.running = False
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the polling loop as a background task."""
        if self.running:
            log.warning("poller_already_running")
            return

        self.running = True
        log.info(POLLER_STARTED, warmup_seconds=self.warmup_seconds)
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop the polling loop and wait for it to finish."""
        self.running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        log.info(POLLER_STOPPED)

    async def wait(self) -> None:
        """Block until the loop ends (it only ends when cancelled)."""
        if self._task is not None:
            await self._task

    async def _poll_loop(self) -> None:
        await self._sleep(self.warmup_seconds)
        while self.running:
            interval = await self.state.update_interval()
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error(
                    "poller_loop_error",
                    error=str(e),
                    exc_info=True,
                )
            # A changed interval applies to the next wait, never the current one
            await self._sleep(interval)

    async def poll_once(self) -> bool:
        """Run one cycle.

        Returns:
            True if sensor states were pushed.
        """
        if not await self.state.is_registered():
            log.debug(POLL_CYCLE_SKIPPED, reason="not_registered")
            return False

        trace_ctx = TraceContext.new_trace("poll")
        async with self.state.collector() as collector:
            values = await asyncio.to_thread(collector.collect_dynamic)
        log.debug(SENSOR_POLL, sensor_count=len(values), **trace_ctx.log_fields())

        try:
            async with self.state.client() as client:
                await client.update_sensors(values, trace_ctx=trace_ctx)
        except WebhookExpired as e:
            log.warning(POLL_CYCLE_FAILED, error=str(e), action="demote", **trace_ctx.log_fields())
            # The stored webhook id stays for diagnostics until re-registration
            await self.state.set_registered(False)
            return False
        except HassClientError as e:
            log.warning(
                POLL_CYCLE_FAILED,
                error=str(e),
                error_type=type(e).__name__,
                **trace_ctx.log_fields(),
            )
            return False

        log.info(POLL_CYCLE_COMPLETED, sensor_count=len(values), **trace_ctx.log_fields())
        return True
