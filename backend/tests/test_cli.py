from datetime import timedelta

from arena.models import LIVE, LOCKED, OPEN, SCHEDULED, Entry, LeaderboardCache, Pool


def test_db_reset_seeds_demo_pools(flask_app):
    result = flask_app.test_cli_runner().invoke(args=['db-reset'])
    assert result.exit_code == 0, result.output
    assert 'seeded with 3 demo pools' in result.output
    assert Pool.query.filter_by(status=SCHEDULED).count() == 3
    assert Pool.query.filter_by(status=OPEN).count() == 1
    assert Entry.query.count() == 9


def test_scoring_tick_command(flask_app, make_pool, make_entry, store, now):
    make_pool(lock_time=now - timedelta(days=3650), status=LIVE)
    store.save_roster_snapshot('pool-1', 'feed', [{'id': 'p1'}], now)
    make_entry('e1', player_ids=['p1'])
    # Far in the past, so the real clock finalises it without scoring
    result = flask_app.test_cli_runner().invoke(args=['scoring-tick'])
    assert result.exit_code == 0, result.output
    assert 'pools=1 scored=0 failed=0' in result.output
    assert LeaderboardCache.query.get('pool-1') is None


def test_maintain_pools_command(flask_app, make_pool, now):
    make_pool('old', lock_time=now - timedelta(days=1), status=OPEN)
    result = flask_app.test_cli_runner().invoke(args=['maintain-pools'])
    assert result.exit_code == 0, result.output
    # Locked and, being a day past lock, closed in the same pass
    assert 'locked=1 closed=1' in result.output
    assert Pool.query.filter(Pool.status.in_([OPEN, LOCKED])).count() == 1
