"""
Supervised actor threads.

Every hardware owner (driving, line follower, network) and the router runs
as an Actor: one daemon thread, one inbound channel per consumed topic, no
state shared with the others. The thread runs a supervisor that restarts
the actor from setup() whenever a run fails.
"""

from abc import ABC, abstractmethod
from threading import Event, Thread
from typing import Optional
import logging
import time

from .bus import MessageBus

logger = logging.getLogger(__name__)


class Actor(ABC):
    """
    Thread-owning unit of work.

    A run is setup(), then loop() until the run ends, then teardown().

    - finish() (from inside) or stop() (from outside) ends the run cleanly
      and the thread exits.
    - An exception from setup() or loop() ends the run as a failure. It is
      logged, teardown() still runs, and a new run starts after
      restart_delay_s. Failures are retried forever.
    """

    def __init__(self, name: str, bus: MessageBus, config, restart_delay_s: float = 0.0):
        """
        Args:
            name: Thread name, also used as the log prefix
            bus: Shared message bus
            config: Root Config
            restart_delay_s: Pause after a failed run before the next setup()
        """
        self.name = name
        self.bus = bus
        self.config = config

        self._restart_delay_s = restart_delay_s
        self._restart_count = 0
        self._running = Event()
        self._thread: Optional[Thread] = None

    @abstractmethod
    def setup(self) -> None:
        """Begin a run. Must rebuild every piece of per-run state."""

    @abstractmethod
    def loop(self) -> None:
        """One bounded unit of work; called until the run ends."""

    @abstractmethod
    def teardown(self) -> None:
        """Release the run's resources. Also called when setup() failed halfway."""

    def start(self) -> None:
        """Spawn the supervisor thread (no-op if it is already alive)."""
        if self._thread and self._thread.is_alive():
            return
        self._running.set()
        self._thread = Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("[%s] Started", self.name)

    def stop(self, timeout: float = 2.0) -> None:
        """End the current run and join the thread."""
        self._running.clear()
        thread, self._thread = self._thread, None
        if thread and thread.is_alive():
            thread.join(timeout)
        logger.info("[%s] Stopped", self.name)

    def finish(self) -> None:
        """End the current run cleanly from inside the actor; no restart follows."""
        self._running.clear()

    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def restart_count(self) -> int:
        """Number of failed runs so far."""
        return self._restart_count

    def _run(self) -> None:
        while self.is_running():
            try:
                self.setup()
                while self.is_running():
                    self.loop()
            except Exception:
                self._restart_count += 1
                logger.exception("[%s] Run failed, restart #%d", self.name, self._restart_count)
            finally:
                self._safe_teardown()

            if self.is_running() and self._restart_delay_s > 0:
                time.sleep(self._restart_delay_s)

    def _safe_teardown(self) -> None:
        try:
            self.teardown()
        except Exception as e:
            logger.error("[%s] Teardown failed: %s", self.name, e)
