"""
Job scheduler - wall-clock interval jobs on a thread pool.

Each job body is wrapped in a SingletonJob: a tick that fires while the previous
run is still in progress is dropped, never queued, and counted in the job stats.
apscheduler allows a second instance (max_instances=2, coalesce) so the
overlapping tick reaches the wrapper, which returns at once.

A failed run is logged with the job name and swallowed; the job simply runs
again at its next tick.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.errors import TickerError
from core.logging_utils import get_logger

logger = get_logger(__name__)


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class JobStats:
    runs: int = 0
    skips: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    last_finished_at: Optional[datetime] = None


class SingletonJob:
    """Callable job wrapper that never runs its body concurrently with itself."""

    def __init__(self, name: str, func: Callable[[], object]):
        self.name = name
        self.func = func
        self.stats = JobStats()
        self._in_progress = threading.Lock()
        self._stats_lock = threading.Lock()

    @property
    def state(self) -> JobState:
        return JobState.RUNNING if self._in_progress.locked() else JobState.IDLE

    def __call__(self) -> bool:
        """Run once if idle. Returns True on success, False if skipped or failed."""
        if not self._in_progress.acquire(blocking=False):
            with self._stats_lock:
                self.stats.skips += 1
            logger.warning("[SCHED] %s still running, dropping this tick", self.name)
            return False

        try:
            with self._stats_lock:
                self.stats.runs += 1
            logger.debug("[SCHED] %s started", self.name)
            self.func()
        except TickerError as e:
            self._record_failure(e)
            logger.error("[SCHED] %s failed: %s", self.name, e)
            return False
        except Exception as e:
            self._record_failure(e)
            logger.exception("[SCHED] %s crashed: %s", self.name, e)
            return False
        else:
            with self._stats_lock:
                self.stats.last_error = None
            return True
        finally:
            with self._stats_lock:
                self.stats.last_finished_at = datetime.now()
            self._in_progress.release()

    def _record_failure(self, error: Exception) -> None:
        with self._stats_lock:
            self.stats.failures += 1
            self.stats.last_error = str(error)


@dataclass
class _Registration:
    job: SingletonJob
    interval_seconds: float
    run_immediately: bool


class TickerScheduler:
    """
    Owns the background scheduler and the registered jobs.

    Usage:
        sched = TickerScheduler()
        sched.add("price_update", core.update_price_ticker, seconds=60)
        sched.start()
        sched.run_forever()  # blocks until shutdown()
    """

    def __init__(self, max_workers: int = 3):
        self._max_workers = max_workers
        self._registrations: dict[str, _Registration] = {}
        self._scheduler: Optional[BackgroundScheduler] = None
        self._stopped = threading.Event()

    @property
    def jobs(self) -> dict[str, SingletonJob]:
        return {name: reg.job for name, reg in self._registrations.items()}

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def add(
        self,
        name: str,
        func: Callable[[], object],
        *,
        seconds: float,
        run_immediately: bool = True,
    ) -> SingletonJob:
        if name in self._registrations:
            raise ValueError(f"job {name!r} already registered")
        if seconds <= 0:
            raise ValueError(f"job {name!r} interval must be positive, got {seconds}")
        job = SingletonJob(name, func)
        self._registrations[name] = _Registration(job, float(seconds), run_immediately)
        return job

    def start(self) -> None:
        if self.running:
            logger.warning("[SCHED] Scheduler is already running")
            return

        workers = max(self._max_workers, len(self._registrations), 1)
        scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=workers)},
            job_defaults={"max_instances": 2, "coalesce": True},
        )
        for name, reg in self._registrations.items():
            kwargs = {}
            if reg.run_immediately:
                kwargs["next_run_time"] = datetime.now()
            scheduler.add_job(
                reg.job,
                trigger=IntervalTrigger(seconds=reg.interval_seconds),
                id=name,
                name=name,
                replace_existing=True,
                **kwargs,
            )
            logger.info("[SCHED] %s every %ss", name, int(reg.interval_seconds))

        self._stopped.clear()
        scheduler.start()
        self._scheduler = scheduler
        logger.info("[SCHED] Started %d jobs", len(self._registrations))

    def run_all_once(self) -> dict[str, bool]:
        """Run every job once, in registration order, on the calling thread."""
        return {name: reg.job() for name, reg in self._registrations.items()}

    def run_forever(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown() is called. Returns True if it was."""
        return self._stopped.wait(timeout)

    def shutdown(self) -> None:
        """Stop the timers immediately; in-flight runs are not drained."""
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("[SCHED] Scheduler shut down")
        self._stopped.set()
