"""Wiring for the pool engine and its two periodic loops."""

import atexit
from dataclasses import dataclass, field
from typing import List, Optional

from arena.models import utcnow
from .leaderboard import LeaderboardBuilder
from .lifecycle import PoolLifecycleManager
from .rosters import SnapshotRosterProvider
from .scheduler import STOP_TIMEOUT_SEC, PeriodicJob, ScoringScheduler
from .scoring import EntryScoreCalculator
from .sources import build_stat_source
from .stats import PlayerStatAccrual
from .store import PoolStore
from .streaks import HotStreakDetector


@dataclass
class PoolEngine:
    store: PoolStore
    lifecycle: PoolLifecycleManager
    scheduler: ScoringScheduler
    leaderboard: LeaderboardBuilder
    jobs: List[PeriodicJob] = field(default_factory=list)


def build_engine(app, store=None, stat_source=None, roster_provider=None, clock=utcnow) -> PoolEngine:
    cfg = app.config
    store = store or PoolStore()
    roster_provider = roster_provider or SnapshotRosterProvider(
        store, generate_demo=bool(cfg.get('DEMO_ROSTERS', True)), clock=clock
    )
    stat_source = stat_source or build_stat_source(cfg, store)
    leaderboard = LeaderboardBuilder(store)

    lifecycle = PoolLifecycleManager(
        store,
        open_duration_sec=int(cfg.get('POOL_OPEN_DURATION_SEC', 300)),
        settle_window_sec=int(cfg.get('POOL_SETTLE_WINDOW_SEC', 600)),
        clock=clock,
    )
    scheduler = ScoringScheduler(
        store,
        PlayerStatAccrual(store, roster_provider, stat_source),
        HotStreakDetector(
            store,
            threshold=int(cfg.get('HOT_STREAK_THRESHOLD', 6)),
            multiplier=float(cfg.get('HOT_STREAK_MULTIPLIER', 1.5)),
            duration_sec=int(cfg.get('HOT_STREAK_DURATION_SEC', 180)),
            cooldown_sec=int(cfg.get('HOT_STREAK_COOLDOWN_SEC', 300)),
            tick_sec=int(cfg.get('SCORING_INTERVAL_SEC', 60)),
        ),
        EntryScoreCalculator(store),
        leaderboard,
        live_window_sec=int(cfg.get('POOL_LIVE_WINDOW_SEC', 1800)),
        clock=clock,
    )
    return PoolEngine(store=store, lifecycle=lifecycle, scheduler=scheduler, leaderboard=leaderboard)


def start_background_loops(app, engine: PoolEngine) -> List[PeriodicJob]:
    """Start the maintenance and scoring loops.

    Called by the serving entry point only; the app factory and one-shot
    CLI commands never start them.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - No-ops when ENABLE_SCHEDULER is off
    - Makes sure a joinable pool exists before the first tick
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return []
    if not app.config.get('ENABLE_SCHEDULER', True):
        app.logger.info("[job-skip] ENABLE_SCHEDULER is off")
        return []
    if engine.jobs:
        return engine.jobs

    startup = PeriodicJob(app, 'ensure-open-pool', 0, engine.lifecycle.ensure_open_pool)
    startup.run_once()

    engine.jobs = [
        PeriodicJob(app, 'maintenance', int(app.config.get('MAINTENANCE_INTERVAL_SEC', 30)),
                    engine.lifecycle.maintain_pools),
        PeriodicJob(app, 'scoring', int(app.config.get('SCORING_INTERVAL_SEC', 60)),
                    engine.scheduler.run_tick),
    ]
    for job in engine.jobs:
        job.start()
    atexit.register(stop_background_loops, engine)
    return engine.jobs


def stop_background_loops(engine: PoolEngine, timeout: Optional[float] = STOP_TIMEOUT_SEC) -> bool:
    """Stop every loop, letting in-flight ticks finish. False if any timed out."""
    stopped = [job.stop(timeout) for job in engine.jobs]
    return all(stopped)
