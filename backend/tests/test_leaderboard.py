from datetime import timedelta

from arena.models import LIVE, LeaderboardCache
from arena.services.pools.leaderboard import LeaderboardBuilder


def test_empty_pool_builds_empty_leaderboard(make_pool, store, now):
    make_pool(status=LIVE)
    rows = LeaderboardBuilder(store).rebuild('pool-1', now)
    assert rows == []
    cache = LeaderboardCache.query.get('pool-1')
    assert cache.rows == []
    assert cache.updated_at == now


def test_ranks_by_total_with_bonus(make_pool, make_entry, store, now):
    make_pool(status=LIVE)
    make_entry('a', player_ids=['p1'], total_cost=4)
    make_entry('b', player_ids=['p2'], total_cost=7)
    store.upsert_score('a', 'pool-1', 10, 0, now)
    store.upsert_score('b', 'pool-1', 8, 2.5, now)

    rows = LeaderboardBuilder(store).rebuild('pool-1', now)

    assert [(r['rank'], r['entry_id'], r['total_score']) for r in rows] == [(1, 'b', 10.5), (2, 'a', 10)]
    top = rows[0]
    assert top['points_total'] == 8
    assert top['hot_streak_bonus_total'] == 2.5
    assert top['players'] == ['p2']
    assert top['total_cost'] == 7
    assert top['username'] == 'user-b'


def test_ties_go_to_earlier_entry(make_pool, make_entry, store, now):
    make_pool(status=LIVE)
    make_entry('late', player_ids=['p1'], created_at=now - timedelta(minutes=1))
    make_entry('early', player_ids=['p1'], created_at=now - timedelta(minutes=20))
    store.upsert_score('late', 'pool-1', 12, 0, now)
    store.upsert_score('early', 'pool-1', 12, 0, now)

    rows = LeaderboardBuilder(store).rebuild('pool-1', now)
    assert [r['entry_id'] for r in rows] == ['early', 'late']
    assert [r['rank'] for r in rows] == [1, 2]


def test_unscored_entries_are_included_as_zero(make_pool, make_entry, store, now):
    make_pool(status=LIVE)
    make_entry('scored', player_ids=['p1'])
    make_entry('fresh', player_ids=['p2'], created_at=now - timedelta(seconds=5))
    store.upsert_score('scored', 'pool-1', 3, 0, now)

    rows = LeaderboardBuilder(store).rebuild('pool-1', now)
    assert [(r['entry_id'], r['total_score']) for r in rows] == [('scored', 3), ('fresh', 0)]


def test_ranks_are_one_through_n(make_pool, make_entry, store, now):
    make_pool(status=LIVE)
    for i in range(12):
        make_entry(f"e{i:02d}", player_ids=['p1'], created_at=now - timedelta(minutes=i))
        store.upsert_score(f"e{i:02d}", 'pool-1', i % 4, 0, now)

    rows = LeaderboardBuilder(store).rebuild('pool-1', now)
    assert [r['rank'] for r in rows] == list(range(1, 13))
    totals = [r['total_score'] for r in rows]
    assert totals == sorted(totals, reverse=True)


def test_rebuild_replaces_cache_wholesale(make_pool, make_entry, store, now):
    make_pool(status=LIVE)
    builder = LeaderboardBuilder(store)
    builder.rebuild('pool-1', now)
    make_entry('a', player_ids=['p1'])
    later = now + timedelta(seconds=60)
    builder.rebuild('pool-1', later)

    cached = builder.get_leaderboard('pool-1')
    assert [r['entry_id'] for r in cached['rows']] == ['a']
    assert cached['updated_at'] == later.isoformat()
    assert LeaderboardCache.query.count() == 1


def test_get_leaderboard_before_first_build(make_pool, store):
    make_pool(status=LIVE)
    assert LeaderboardBuilder(store).get_leaderboard('pool-1') == {
        'pool_id': 'pool-1', 'updated_at': None, 'rows': [],
    }
