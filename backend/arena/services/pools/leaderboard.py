from typing import List

from flask import current_app

from arena import socketio
from arena.models import isoformat
from .scoring import roster_of


def rank_rows(entries, scores) -> List[dict]:
    """Ranked leaderboard rows for `entries`.

    Highest total first; ties go to the earlier entry, then the lower entry
    id. Entries with no score yet count as zero. Ranks run 1..N.
    """
    rows = []
    for entry in entries:
        score = scores.get(entry.entry_id)
        points_total = score.points_total if score else 0
        bonus_total = score.hot_streak_bonus_total if score else 0
        rows.append({
            'entry_id': entry.entry_id,
            'username': entry.username,
            'total_cost': entry.total_cost,
            'points_total': points_total,
            'hot_streak_bonus_total': bonus_total,
            'total_score': points_total + bonus_total,
            'players': list(roster_of(entry) or []),
            'created_at': isoformat(entry.created_at),
            '_created': entry.created_at,
        })
    rows.sort(key=lambda r: (-r['total_score'], r['_created'], r['entry_id']))
    for rank, row in enumerate(rows, start=1):
        row.pop('_created')
        row['rank'] = rank
    return rows


class LeaderboardBuilder:

    def __init__(self, store):
        self.store = store

    def rebuild(self, pool_id: str, now) -> List[dict]:
        """Rebuild and wholesale-replace the cached leaderboard for a pool."""
        rows = rank_rows(self.store.list_entries(pool_id), self.store.get_scores(pool_id))
        self.store.replace_leaderboard(pool_id, rows, now)
        current_app.logger.info(f"[leaderboard] pool={pool_id} rows={len(rows)}")
        socketio.emit(
            'leaderboard_update',
            {'pool_id': pool_id, 'updated_at': isoformat(now), 'count': len(rows)},
            to=f"pool:{pool_id}",
            namespace='/ws',
        )
        return rows

    def get_leaderboard(self, pool_id: str) -> dict:
        cache = self.store.get_leaderboard(pool_id)
        if cache is None:
            return {'pool_id': pool_id, 'updated_at': None, 'rows': []}
        return cache.to_dict()
