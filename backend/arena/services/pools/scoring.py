from typing import Dict, Optional, Tuple

from flask import current_app

from arena.models import Entry
from .store import StoreError


def roster_of(entry: Entry) -> Optional[list]:
    """The entry's player ids, or None when the stored roster is unusable."""
    ids = entry.player_ids
    if not isinstance(ids, list) or not all(isinstance(pid, str) and pid for pid in ids):
        return None
    return ids


def score_roster(player_ids, points: Dict[str, int], multipliers: Dict[str, float]) -> Tuple[float, float]:
    """Base points and hot-streak bonus for one roster.

    The bonus only carries the increment above base (points x (multiplier - 1))
    so base points are never counted twice.
    """
    base_total = 0
    bonus_total = 0.0
    for player_id in player_ids:
        base = points.get(player_id, 0)
        base_total += base
        multiplier = multipliers.get(player_id)
        if multiplier is not None:
            bonus_total += base * (multiplier - 1)
    return base_total, bonus_total


class EntryScoreCalculator:
    """Full recompute of every entry score in a pool from current state.

    Nothing is carried between ticks, so a missed or repeated tick converges
    to the same numbers.
    """

    def __init__(self, store):
        self.store = store

    def recalculate(self, pool_id: str, now) -> int:
        entries = self.store.list_entries(pool_id)
        if not entries:
            current_app.logger.info(f"[entry-scores] pool={pool_id} no entries")
            return 0
        points = self.store.get_points_map(pool_id)
        multipliers = self.store.active_multipliers(pool_id, now)

        scored = 0
        for entry in entries:
            player_ids = roster_of(entry)
            if player_ids is None:
                current_app.logger.warning(
                    f"[entry-scores] pool={pool_id} entry={entry.entry_id} malformed roster {entry.player_ids!r}; scoring 0"
                )
                player_ids = []
            base_total, bonus_total = score_roster(player_ids, points, multipliers)
            try:
                self.store.upsert_score(entry.entry_id, pool_id, base_total, bonus_total, now)
            except StoreError as exc:
                current_app.logger.warning(f"[entry-scores-error] pool={pool_id} entry={entry.entry_id} {exc}")
                continue
            scored += 1

        current_app.logger.info(f"[entry-scores] pool={pool_id} entries={len(entries)} scored={scored}")
        return scored
