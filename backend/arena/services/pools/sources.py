"""Pluggable producers of per-tick player point deltas.

``demo`` draws uniform random deltas; ``sportradar`` reads the live game
summary and hands back whatever the stored total is still missing.
"""

import random
from typing import Dict, Optional, Tuple

import requests
from flask import current_app

from arena.models import utcnow


class StatSourceError(RuntimeError):
    """The stat source could not produce a delta for this tick."""


class RateLimitError(StatSourceError):
    """The upstream feed answered HTTP 429."""


class StatSource:
    name = 'base'

    def accrue(self, pool_id: str, player_id: str) -> int:
        """Points `player_id` produced in `pool_id` since the previous tick."""
        raise NotImplementedError


class RandomStatSource(StatSource):
    name = 'demo'

    def __init__(self, max_points: int = 8, rng: Optional[random.Random] = None):
        self.max_points = max_points
        self.rng = rng or random.Random()

    def accrue(self, pool_id, player_id):
        return self.rng.randint(0, self.max_points)


class SportradarStatSource(StatSource):
    """Deltas from the Sportradar NBA game summary.

    The feed reports cumulative points, so the delta is the feed total minus
    what the store already holds (never negative). Re-running a tick against
    an unchanged feed therefore adds nothing.
    """
    name = 'sportradar'

    def __init__(self, store, api_key: str, base_url: str = 'https://api.sportradar.com',
                 access_level: str = 'trial', cache_ttl_sec: int = 30, session=None,
                 clock=utcnow, timeout: int = 10):
        self.store = store
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.access_level = access_level
        self.cache_ttl_sec = cache_ttl_sec
        self.session = session or requests.Session()
        self.clock = clock
        self.timeout = timeout
        self._cache: Dict[str, Tuple[object, Dict[str, int]]] = {}

    def accrue(self, pool_id, player_id):
        pool = self.store.get_pool(pool_id)
        if pool is None or not pool.sr_game_id:
            return 0
        totals = self._game_totals(pool.sr_game_id)
        if player_id not in totals:
            return 0
        return max(0, totals[player_id] - self.store.get_points(pool_id, player_id))

    def _game_totals(self, game_id: str) -> Dict[str, int]:
        now = self.clock()
        cached = self._cache.get(game_id)
        if cached and (now - cached[0]).total_seconds() < self.cache_ttl_sec:
            return cached[1]

        if not self.api_key:
            current_app.logger.warning("[sportradar] SPORTRADAR_API_KEY not set; no feed deltas")
            self._cache[game_id] = (now, {})
            return {}

        url = f"{self.base_url}/nba/{self.access_level}/v8/en/games/{game_id}/summary.json"
        try:
            response = self.session.get(url, params={'api_key': self.api_key}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise StatSourceError(f"network error for game {game_id}: {exc}") from exc
        if response.status_code == 429:
            raise RateLimitError(f"429 Too Many Requests for game {game_id}")
        if response.status_code != 200:
            raise StatSourceError(f"HTTP {response.status_code} for game {game_id}")

        try:
            totals = self._parse_summary(response.json() or {})
        except (ValueError, TypeError, AttributeError) as exc:
            raise StatSourceError(f"malformed summary for game {game_id}: {exc}") from exc
        self._cache[game_id] = (now, totals)
        current_app.logger.info(f"[sportradar] game={game_id} players={len(totals)}")
        return totals

    @staticmethod
    def _parse_summary(payload) -> Dict[str, int]:
        totals = {}
        for side in ('home', 'away'):
            for player in (payload.get(side) or {}).get('players') or []:
                if not player.get('id'):
                    continue
                stats = player.get('statistics') or {}
                totals[player['id']] = int(stats.get('points') or 0)
        return totals


def build_stat_source(config, store) -> StatSource:
    kind = (config.get('STAT_SOURCE') or 'demo').lower()
    if kind == 'demo':
        return RandomStatSource(max_points=int(config.get('DEMO_MAX_POINTS', 8)))
    if kind == 'sportradar':
        return SportradarStatSource(
            store,
            api_key=config.get('SPORTRADAR_API_KEY', ''),
            base_url=config.get('SPORTRADAR_BASE_URL', 'https://api.sportradar.com'),
            access_level=config.get('SPORTRADAR_NBA_ACCESS_LEVEL', 'trial'),
            cache_ttl_sec=int(config.get('FEED_CACHE_TTL_SEC', 30)),
        )
    raise ValueError(f"unknown STAT_SOURCE: {kind!r}")
