from datetime import timedelta
from typing import Callable, Optional

from flask import current_app

from arena import db, socketio
from arena.models import (
    ACTIVE_STATUSES,
    IN_PLAY,
    IN_PLAY_STATUSES,
    PRE_LOCK,
    SETTLED,
    lane_of,
    phase_of,
    utcnow,
)

LIVE_WINDOW_SEC = 30 * 60
STOP_TIMEOUT_SEC = 30


class ScoringScheduler:
    """One scoring tick across every non-terminal pool.

    Per pool: bring the status in line with the clock, then for pools in
    play run accrue -> hot streaks -> entry scores -> leaderboard, in that
    order. A failing pool is logged and skipped; the rest of the tick goes on.
    """

    def __init__(self, store, accrual, detector, calculator, leaderboard,
                 live_window_sec: int = LIVE_WINDOW_SEC, clock=utcnow):
        self.store = store
        self.accrual = accrual
        self.detector = detector
        self.calculator = calculator
        self.leaderboard = leaderboard
        self.live_window = timedelta(seconds=live_window_sec)
        self.clock = clock

    def derive_status(self, status: str, lock_time, now) -> str:
        """Status the clock says a pool should have, in the pool's own lane."""
        if now < lock_time:
            phase = PRE_LOCK
        elif now - lock_time < self.live_window:
            phase = IN_PLAY
        else:
            phase = SETTLED
        return lane_of(status)[phase]

    def run_tick(self, now=None) -> dict:
        if now is None:
            now = self.clock()
        # Plain values up front; per-step commits expire ORM instances.
        pools = [(p.pool_id, p.status, p.lock_time) for p in self.store.list_pools_by_status(*ACTIVE_STATUSES)]

        scored = 0
        failed = 0
        for pool_id, status, lock_time in pools:
            step = 'status'
            try:
                status = self._sync_status(pool_id, status, lock_time, now)
                if status not in IN_PLAY_STATUSES:
                    continue
                step = 'accrue'
                deltas = self.accrual.accrue_pool(pool_id, now)
                step = 'hot-streaks'
                self.detector.detect(pool_id, deltas, now)
                step = 'entry-scores'
                self.calculator.recalculate(pool_id, now)
                step = 'leaderboard'
                self.leaderboard.rebuild(pool_id, now)
                scored += 1
            except Exception:
                db.session.rollback()
                failed += 1
                current_app.logger.exception(f"[scoring-error] pool={pool_id} step={step}")

        current_app.logger.info(f"[scoring-tick] at={now.isoformat()} pools={len(pools)} scored={scored} failed={failed}")
        return {'pools': len(pools), 'scored': scored, 'failed': failed}

    def _sync_status(self, pool_id, status, lock_time, now) -> str:
        target = self.derive_status(status, lock_time, now)
        # Never regress: a pool moved ahead by hand keeps its status.
        if phase_of(target) <= phase_of(status):
            return status
        if self.store.update_pool_status(pool_id, target):
            current_app.logger.info(f"[pool-status] pool={pool_id} {status} -> {target}")
            return target
        pool = self.store.get_pool(pool_id)
        return pool.status if pool else status


class PeriodicJob:
    """Runs `tick` every `interval_sec` seconds in a Socket.IO background task.

    One task per job, tick then wait, so a job never overlaps itself.
    `stop()` lets an in-flight tick finish and waits for the loop to exit.
    Events come from the Socket.IO server so waits cooperate with whatever
    async mode it runs under.
    """

    def __init__(self, app, name: str, interval_sec: float, tick: Callable[[], object]):
        self.app = app
        self.name = name
        self.interval_sec = interval_sec
        self.tick = tick
        self._stop_event = socketio.server.eio.create_event()
        self._done = socketio.server.eio.create_event()
        self._done.set()
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._stop_event.is_set()

    def run_once(self) -> Optional[object]:
        """Run one tick inside an app context; never raises."""
        with self.app.app_context():
            try:
                return self.tick()
            except Exception:
                db.session.rollback()
                self.app.logger.exception(f"[tick-error] job={self.name}")
                return None
            finally:
                db.session.remove()

    def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._done.clear()
        self._task = socketio.start_background_task(self._loop)
        self.app.logger.info(f"[job-start] job={self.name} interval={self.interval_sec}s")

    def stop(self, timeout: Optional[float] = STOP_TIMEOUT_SEC) -> bool:
        """Signal the loop to exit and wait up to `timeout` for the current tick.

        Returns False if the loop was still running when the wait gave up.
        """
        self._stop_event.set()
        if self._task is None:
            return True
        self._done.wait(timeout)
        if not self._done.is_set():
            self.app.logger.warning(f"[job-stop-timeout] job={self.name} timeout={timeout}s")
            return False
        return True

    def _loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                self.run_once()
                self._stop_event.wait(self.interval_sec)
        finally:
            self._task = None
            self._done.set()
            self.app.logger.info(f"[job-stop] job={self.name}")
