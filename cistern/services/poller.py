"""
Build Poller
============
Background loop that runs poll cycles and publishes their results.

Scheduling:
    - A timer tick runs a cycle, waits for it, then sleeps poll_interval.
    - A tick that finds a cycle in flight does nothing.
    - A manual refresh supersedes an in-flight cycle: the old task is
      cancelled and the generation counter moves on.
    - ``restart()`` (after a settings or token change) supersedes any
      in-flight cycle and restarts the timer. Transition tracking carries
      over, so builds are not announced again.

Publishing:
    Each cycle captures the generation it started with. Results (and
    progress updates) from a cycle whose generation is no longer current are
    dropped. The published PollState is replaced as a whole, never mutated.

Failure:
    No token → builds cleared, no network call.
    A failed cycle → builds cleared and a user-facing error published.
"""
import asyncio
import logging
from typing import Callable, Optional

from cistern.core.errors import CircleCIError, NoCredentialError
from cistern.models.timestamps import utcnow
from cistern.pipeline.assembler import TransitionTracker
from cistern.pipeline.orchestrator import CycleConfig, fetch_latest_builds
from cistern.services.circleci_client import CircleCIClient
from cistern.services.notifier import BuildNotifier
from cistern.services.settings_store import SettingsStore
from cistern.services.token_store import TokenStore
from cistern.state.poll_state import PollState, initial_state

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Fetch failed"


class BuildPoller:

    def __init__(
        self,
        client: CircleCIClient,
        token_store: TokenStore,
        settings_store: SettingsStore,
        notifier: Optional[BuildNotifier] = None,
        config_factory: Callable = CycleConfig.from_settings,
    ) -> None:
        self.client = client
        self.token_store = token_store
        self.settings_store = settings_store
        self.notifier = notifier or BuildNotifier()
        self.config_factory = config_factory

        self._state: PollState = initial_state()
        self._tracker = TransitionTracker()
        self._generation = 0
        self._cycle_task: Optional[asyncio.Task] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._wakeup = asyncio.Event()

    # ------------------------------------------------------------------
    # State handoff
    # ------------------------------------------------------------------
    @property
    def state(self) -> PollState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    def _publish(self, **updates) -> None:
        self._state = PollState(**{**self._state, **updates})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._run_loop(), name="cistern-poller")
            logger.info("Poller started (interval %ss)", self.settings_store.poll_interval)

    async def stop(self) -> None:
        for task in (self._loop_task, self._cycle_task):
            if task is not None and not task.done():
                task.cancel()
                await asyncio.wait({task})
        self._loop_task = None
        self._cycle_task = None
        logger.info("Poller stopped")

    async def _run_loop(self) -> None:
        while True:
            await self.tick()
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self.settings_store.poll_interval)
            except asyncio.TimeoutError:
                pass

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------
    async def tick(self) -> None:
        """Timer-driven cycle. Skipped while another cycle is running."""
        if self.cycle_in_flight:
            logger.debug("Skipping timer tick: cycle %d still in flight", self._generation)
            return
        task = self._start_cycle(show_loading=not self._state["builds"])
        await asyncio.wait({task})

    async def refresh(self) -> asyncio.Task:
        """Manual refresh. Supersedes a cycle that is still running."""
        if self.cycle_in_flight:
            logger.info("Manual refresh supersedes cycle %d", self._generation)
            self._publish(cycles_superseded=self._state["cycles_superseded"] + 1)
            old_task = self._cycle_task
            old_task.cancel()
            await asyncio.wait({old_task})
        return self._start_cycle(show_loading=True)

    async def restart(self) -> asyncio.Task:
        """Apply new settings or a new token right away."""
        self._wakeup.set()
        return await self.refresh()

    def _start_cycle(self, show_loading: bool) -> asyncio.Task:
        self._generation += 1
        self._cycle_task = asyncio.create_task(
            self._run_cycle(self._generation, show_loading),
            name=f"cistern-cycle-{self._generation}",
        )
        return self._cycle_task

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run_cycle(self, generation: int, show_loading: bool) -> None:
        if not self.token_store.has_token():
            logger.info("No API token configured; clearing builds")
            self._publish(builds=[], is_loading=False, loading_count=0,
                          error=NoCredentialError.user_message)
            return

        if show_loading:
            self._publish(is_loading=True, loading_count=0)

        def on_progress(count: int) -> None:
            if self._is_current(generation):
                self._publish(loading_count=count)

        now = utcnow()
        cycle_config = self.config_factory(self.settings_store.settings)
        try:
            builds = await fetch_latest_builds(self.client, cycle_config, on_progress=on_progress, now=now)
        except CircleCIError as e:
            self._fail_cycle(generation, e.user_message, e)
            return
        except Exception as e:
            self._fail_cycle(generation, FETCH_FAILED_MESSAGE, e, exc_info=True)
            return

        if not self._is_current(generation):
            logger.info("Dropping results of superseded cycle %d", generation)
            return

        events = self._tracker.diff(builds)
        self._publish(
            builds=builds,
            last_updated=now,
            is_loading=False,
            loading_count=0,
            error=None,
            cycles_completed=self._state["cycles_completed"] + 1,
        )
        logger.info("Cycle %d published %d builds", generation, len(builds))
        self.notifier.notify(events, now)

    def _fail_cycle(self, generation: int, message: str, error: Exception, exc_info: bool = False) -> None:
        if not self._is_current(generation):
            logger.info("Ignoring failure of superseded cycle %d: %s", generation, error)
            return
        logger.error("Error fetching builds (cycle %d): %s", generation, error, exc_info=exc_info)
        self._publish(
            builds=[],
            is_loading=False,
            loading_count=0,
            error=message,
            cycles_failed=self._state["cycles_failed"] + 1,
        )
