from datetime import timedelta
from typing import Optional

from flask import current_app

from arena.models import CLOSED, LOCKED, OPEN, Pool, utcnow
from .store import PoolStore, StoreError

OPEN_DURATION_SEC = 300
SETTLE_WINDOW_SEC = 600


class PoolLifecycleManager:
    """Keeps one joinable pool around and ages pools OPEN -> LOCKED -> CLOSED.

    Only writes statuses; scoring happens in the scoring loop.
    """

    def __init__(self, store: PoolStore, open_duration_sec: int = OPEN_DURATION_SEC,
                 settle_window_sec: int = SETTLE_WINDOW_SEC, clock=utcnow):
        self.store = store
        self.open_duration = timedelta(seconds=open_duration_sec)
        self.settle_window = timedelta(seconds=settle_window_sec)
        self.clock = clock

    def ensure_open_pool(self, now=None) -> Optional[Pool]:
        """Return an OPEN pool that still locks in the future, creating one if needed.

        Returns None when the id for `now` is already taken by a pool that is
        no longer joinable.
        """
        if now is None:
            now = self.clock()
        pool = self.store.find_open_pool(now)
        if pool:
            current_app.logger.debug(f"[pool-open] pool={pool.pool_id} exists lock_time={pool.lock_time.isoformat()}")
            return pool

        pool_id = f"blitz-{int(now.timestamp() * 1000)}"
        existing = self.store.get_pool(pool_id)
        if existing is not None:
            if existing.status == OPEN and existing.lock_time > now:
                return existing
            current_app.logger.warning(
                f"[pool-open-conflict] pool={pool_id} status={existing.status} not joinable; skipping create"
            )
            return None

        lock_time = now + self.open_duration
        pool = Pool(
            pool_id=pool_id,
            name=f"Blitz Arena (15m) - {now:%Y-%m-%d %H:%M}",
            date=now.date().isoformat(),
            sr_game_id=pool_id,
            lock_time=lock_time,
            status=OPEN,
            created_at=now,
        )
        self.store.insert_pool(pool)
        current_app.logger.info(f"[pool-create] pool={pool_id} status={OPEN} lock_time={lock_time.isoformat()}")
        return pool

    def maintain_pools(self, now=None) -> dict:
        if now is None:
            now = self.clock()
        locked = 0
        closed = 0

        for pool in self.store.list_pools_by_status(OPEN):
            if pool.lock_time <= now and self._advance(pool.pool_id, LOCKED):
                locked += 1

        for pool in self.store.list_pools_by_status(LOCKED):
            if pool.lock_time + self.settle_window <= now and self._advance(pool.pool_id, CLOSED):
                closed += 1

        if closed:
            self.ensure_open_pool(now)
        return {'locked': locked, 'closed': closed}

    def _advance(self, pool_id: str, status: str) -> bool:
        try:
            changed = self.store.update_pool_status(pool_id, status)
        except StoreError:
            current_app.logger.exception(f"[pool-maintenance-error] pool={pool_id} target={status}")
            return False
        if changed:
            current_app.logger.info(f"[pool-{status.lower()}] pool={pool_id} -> {status}")
        return changed
