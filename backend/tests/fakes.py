"""Deterministic stand-ins for the engine's pluggable collaborators."""

from arena.services.pools.rosters import RosterProvider
from arena.services.pools.sources import StatSource
from arena.services.pools.store import PoolStore, StoreError


class FixedStatSource(StatSource):
    """Hands out a preset delta per player; unknown players produce nothing."""
    name = 'fixed'

    def __init__(self, deltas=None):
        self.deltas = dict(deltas or {})
        self.calls = []

    def accrue(self, pool_id, player_id):
        self.calls.append((pool_id, player_id))
        return self.deltas.get(player_id, 0)


class StaticRosterProvider(RosterProvider):
    def __init__(self, rosters=None, broken=()):
        self.rosters = dict(rosters or {})
        self.broken = set(broken)

    def get_roster(self, pool_id):
        if pool_id in self.broken:
            raise RuntimeError(f"roster feed down for {pool_id}")
        return [{'id': pid} for pid in self.rosters.get(pool_id, [])]


class FlakyStore(PoolStore):
    """PoolStore whose writes fail for chosen pools, players or entries."""

    def __init__(self, fail_pools=(), fail_players=(), fail_entries=()):
        self.fail_pools = set(fail_pools)
        self.fail_players = set(fail_players)
        self.fail_entries = set(fail_entries)

    def update_pool_status(self, pool_id, status):
        if pool_id in self.fail_pools:
            raise StoreError(f"update pool {pool_id}: disk full")
        return super().update_pool_status(pool_id, status)

    def add_points(self, pool_id, player_id, delta, now):
        if player_id in self.fail_players:
            raise StoreError(f"add points {pool_id}/{player_id}: disk full")
        return super().add_points(pool_id, player_id, delta, now)

    def upsert_score(self, entry_id, pool_id, points_total, bonus_total, now):
        if entry_id in self.fail_entries:
            raise StoreError(f"upsert score {entry_id}: disk full")
        return super().upsert_score(entry_id, pool_id, points_total, bonus_total, now)
