from typing import Dict

from flask import current_app

from .sources import StatSourceError
from .store import StoreError


class PlayerStatAccrual:
    """Adds one tick of production to each rostered player's running total."""

    def __init__(self, store, roster_provider, stat_source):
        self.store = store
        self.roster_provider = roster_provider
        self.stat_source = stat_source

    def accrue_pool(self, pool_id: str, now) -> Dict[str, int]:
        """Apply this tick's deltas and return them keyed by player id.

        The returned mapping is what hot-streak detection must see, so only
        deltas that actually reached the store are included.
        """
        roster = self.roster_provider.get_roster(pool_id)
        if not roster:
            current_app.logger.info(f"[accrual-skip] pool={pool_id} no roster")
            return {}

        applied = {}
        for player in roster:
            player_id = player.get('id') if isinstance(player, dict) else None
            if not player_id:
                continue
            try:
                delta = max(0, int(self.stat_source.accrue(pool_id, player_id) or 0))
                self.store.add_points(pool_id, player_id, delta, now)
            except (StatSourceError, StoreError) as exc:
                current_app.logger.warning(f"[accrual-error] pool={pool_id} player={player_id} {exc}")
                continue
            applied[player_id] = delta

        current_app.logger.info(
            f"[accrual] pool={pool_id} players={len(applied)} points_added={sum(applied.values())}"
        )
        return applied
