"""Persistence boundary for the pool engine.

Every engine component reaches the database through a ``PoolStore`` handed
to it at construction time. Writes commit immediately; a failed statement
rolls the session back and surfaces as ``StoreError`` so the caller can log
it and carry on with the next pool, player or entry.
"""

from contextlib import contextmanager
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from arena import db
from arena.models import (
    OPEN,
    Entry,
    EntryScore,
    HotStreakEvent,
    LeaderboardCache,
    PlayerStat,
    Pool,
    RosterSnapshot,
)


class StoreError(RuntimeError):
    """A read or write against the pool store failed."""


@contextmanager
def _guard(what: str):
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError(f'{what}: {exc}') from exc


class PoolStore:

    # ---- pools ----

    def list_pools_by_status(self, *statuses: str) -> List[Pool]:
        with _guard('list pools'):
            return Pool.query.filter(Pool.status.in_(statuses)).order_by(Pool.lock_time, Pool.pool_id).all()

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        with _guard(f'get pool {pool_id}'):
            return db.session.get(Pool, pool_id)

    def find_open_pool(self, now) -> Optional[Pool]:
        with _guard('find open pool'):
            return (
                Pool.query.filter(Pool.status == OPEN, Pool.lock_time > now)
                .order_by(Pool.lock_time)
                .first()
            )

    def insert_pool(self, pool: Pool) -> Pool:
        with _guard(f'insert pool {pool.pool_id}'):
            db.session.add(pool)
            db.session.commit()
        return pool

    def update_pool_status(self, pool_id: str, status: str) -> bool:
        """Move a pool forward along its lane.

        Returns False without writing when the pool is gone or the stored
        status is already at or past `status` (e.g. an administrative change
        landed first).
        """
        with _guard(f'update pool {pool_id} -> {status}'):
            pool = db.session.get(Pool, pool_id)
            if pool is None or not pool.can_advance_to(status):
                return False
            pool.status = status
            db.session.commit()
        return True

    # ---- rosters ----

    def get_latest_roster(self, pool_id: str) -> Optional[list]:
        with _guard(f'get roster {pool_id}'):
            snap = (
                RosterSnapshot.query.filter_by(pool_id=pool_id)
                .order_by(RosterSnapshot.captured_at.desc(), RosterSnapshot.id.desc())
                .first()
            )
            return snap.players if snap else None

    def save_roster_snapshot(self, pool_id: str, source: str, players: list, now) -> RosterSnapshot:
        with _guard(f'save roster {pool_id}'):
            snap = RosterSnapshot(pool_id=pool_id, source=source, players=players, captured_at=now)
            db.session.add(snap)
            db.session.commit()
        return snap

    # ---- player stats ----

    def get_points(self, pool_id: str, player_id: str) -> int:
        with _guard(f'get points {pool_id}/{player_id}'):
            stat = db.session.get(PlayerStat, (pool_id, player_id))
            return stat.points if stat else 0

    def get_points_map(self, pool_id: str) -> Dict[str, int]:
        with _guard(f'get points {pool_id}'):
            return {s.player_id: s.points for s in PlayerStat.query.filter_by(pool_id=pool_id).all()}

    def add_points(self, pool_id: str, player_id: str, delta: int, now) -> int:
        if delta < 0:
            raise ValueError(f'points never decrease (delta={delta})')
        with _guard(f'add points {pool_id}/{player_id}'):
            stat = db.session.get(PlayerStat, (pool_id, player_id))
            if stat is None:
                stat = PlayerStat(pool_id=pool_id, player_id=player_id, points=0)
                db.session.add(stat)
            stat.points = (stat.points or 0) + delta
            stat.updated_at = now
            db.session.commit()
            return stat.points

    # ---- hot streaks ----

    def get_active_event(self, pool_id: str, player_id: str, now) -> Optional[HotStreakEvent]:
        with _guard(f'get active event {pool_id}/{player_id}'):
            return (
                HotStreakEvent.query.filter(
                    HotStreakEvent.pool_id == pool_id,
                    HotStreakEvent.player_id == player_id,
                    HotStreakEvent.start_at <= now,
                    HotStreakEvent.end_at > now,
                )
                .order_by(HotStreakEvent.created_at.desc())
                .first()
            )

    def get_most_recent_event_since(self, pool_id: str, player_id: str, since) -> Optional[HotStreakEvent]:
        with _guard(f'get recent event {pool_id}/{player_id}'):
            return (
                HotStreakEvent.query.filter(
                    HotStreakEvent.pool_id == pool_id,
                    HotStreakEvent.player_id == player_id,
                    HotStreakEvent.created_at > since,
                )
                .order_by(HotStreakEvent.created_at.desc())
                .first()
            )

    def insert_event(self, event: HotStreakEvent) -> HotStreakEvent:
        with _guard(f'insert event {event.pool_id}/{event.player_id}'):
            db.session.add(event)
            db.session.commit()
        return event

    def list_active_events(self, pool_id: str, now, limit: Optional[int] = None) -> List[HotStreakEvent]:
        with _guard(f'list active events {pool_id}'):
            query = HotStreakEvent.query.filter(
                HotStreakEvent.pool_id == pool_id,
                HotStreakEvent.start_at <= now,
                HotStreakEvent.end_at > now,
            ).order_by(HotStreakEvent.created_at.desc())
            if limit:
                query = query.limit(limit)
            return query.all()

    def active_multipliers(self, pool_id: str, now) -> Dict[str, float]:
        # Newest event wins should two ever overlap.
        events = self.list_active_events(pool_id, now)
        return {e.player_id: e.multiplier for e in reversed(events)}

    # ---- entries and scores ----

    def list_entries(self, pool_id: str) -> List[Entry]:
        with _guard(f'list entries {pool_id}'):
            return Entry.query.filter_by(pool_id=pool_id).order_by(Entry.created_at, Entry.entry_id).all()

    def upsert_score(self, entry_id: str, pool_id: str, points_total, bonus_total, now) -> EntryScore:
        with _guard(f'upsert score {entry_id}'):
            score = db.session.get(EntryScore, entry_id)
            if score is None:
                score = EntryScore(entry_id=entry_id, pool_id=pool_id)
                db.session.add(score)
            score.points_total = points_total
            score.hot_streak_bonus_total = bonus_total
            score.updated_at = now
            db.session.commit()
        return score

    def get_scores(self, pool_id: str) -> Dict[str, EntryScore]:
        with _guard(f'get scores {pool_id}'):
            return {s.entry_id: s for s in EntryScore.query.filter_by(pool_id=pool_id).all()}

    # ---- leaderboard cache ----

    def replace_leaderboard(self, pool_id: str, rows: list, now) -> LeaderboardCache:
        with _guard(f'replace leaderboard {pool_id}'):
            cache = db.session.get(LeaderboardCache, pool_id)
            if cache is None:
                cache = LeaderboardCache(pool_id=pool_id)
                db.session.add(cache)
            cache.rows = list(rows)
            cache.updated_at = now
            db.session.commit()
        return cache

    def get_leaderboard(self, pool_id: str) -> Optional[LeaderboardCache]:
        with _guard(f'get leaderboard {pool_id}'):
            return db.session.get(LeaderboardCache, pool_id)
