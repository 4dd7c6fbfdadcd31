"""Hot-streak detection.

A player earns one multiplier window after a big tick, then sits out a
cooldown measured from the window's creation time before qualifying again.
Both gates are checked against the store, so repeated or overlapping ticks
cannot stack windows.
"""

from datetime import timedelta
from typing import Dict, List

from flask import current_app

from arena import socketio
from arena.models import HotStreakEvent
from .store import StoreError

THRESHOLD = 6
MULTIPLIER = 1.5
DURATION_SEC = 180
COOLDOWN_SEC = 300


class HotStreakDetector:

    def __init__(self, store, threshold: int = THRESHOLD, multiplier: float = MULTIPLIER,
                 duration_sec: int = DURATION_SEC, cooldown_sec: int = COOLDOWN_SEC,
                 tick_sec: int = 60):
        self.store = store
        self.threshold = threshold
        self.multiplier = multiplier
        self.duration = timedelta(seconds=duration_sec)
        self.cooldown = timedelta(seconds=cooldown_sec)
        self.tick_sec = tick_sec

    def detect(self, pool_id: str, deltas: Dict[str, int], now) -> List[HotStreakEvent]:
        """Open windows for players whose delta this tick qualifies."""
        created = []
        for player_id, delta in deltas.items():
            if not delta or delta < self.threshold:
                continue
            try:
                event = self._maybe_open(pool_id, player_id, delta, now)
            except StoreError as exc:
                current_app.logger.warning(f"[hot-streak-error] pool={pool_id} player={player_id} {exc}")
                continue
            if event is not None:
                created.append(event)
        return created

    def _maybe_open(self, pool_id, player_id, delta, now):
        if self.store.get_active_event(pool_id, player_id, now) is not None:
            return None
        if self.store.get_most_recent_event_since(pool_id, player_id, now - self.cooldown) is not None:
            return None

        event = HotStreakEvent(
            pool_id=pool_id,
            player_id=player_id,
            start_at=now,
            end_at=now + self.duration,
            multiplier=self.multiplier,
            trigger_note=f"+{delta} pts in {self.tick_sec}s",
            created_at=now,
        )
        self.store.insert_event(event)
        current_app.logger.info(
            f"[hot-streak] pool={pool_id} player={player_id} delta={delta} x{self.multiplier} until={event.end_at.isoformat()}"
        )
        socketio.emit('hot_streak', {'pool_id': pool_id, **event.to_dict(now)}, to=f"pool:{pool_id}", namespace='/ws')
        return event


def active_streaks(store, pool_id: str, now, limit: int = 3) -> List[dict]:
    return [e.to_dict(now) for e in store.list_active_events(pool_id, now, limit=limit)]
