from datetime import timedelta

from arena.models import HotStreakEvent, LIVE
from arena.services.pools.streaks import HotStreakDetector, active_streaks


def _events(pool_id='pool-1', player_id='p1'):
    return (
        HotStreakEvent.query.filter_by(pool_id=pool_id, player_id=player_id)
        .order_by(HotStreakEvent.created_at)
        .all()
    )


def test_qualifying_delta_opens_window_then_active_gate_blocks(store, make_pool, now):
    make_pool(status=LIVE)
    detector = HotStreakDetector(store, threshold=6, multiplier=1.5, duration_sec=180, cooldown_sec=300)

    created = detector.detect('pool-1', {'p1': 7}, now)
    assert len(created) == 1
    event = _events()[0]
    assert event.start_at == now
    assert event.end_at == now + timedelta(seconds=180)
    assert event.multiplier == 1.5
    assert event.trigger_note == '+7 pts in 60s'
    assert event.created_at == now

    assert detector.detect('pool-1', {'p1': 9}, now + timedelta(seconds=1)) == []
    assert len(_events()) == 1


def test_delta_below_threshold_or_zero_is_ignored(store, make_pool, now):
    make_pool(status=LIVE)
    detector = HotStreakDetector(store, threshold=6)
    assert detector.detect('pool-1', {'p1': 5, 'p2': 0}, now) == []
    assert HotStreakEvent.query.count() == 0


def test_threshold_is_inclusive(store, make_pool, now):
    make_pool(status=LIVE)
    assert len(HotStreakDetector(store, threshold=6).detect('pool-1', {'p1': 6}, now)) == 1


def test_cooldown_counts_from_creation_not_end(store, make_pool, now):
    make_pool(status=LIVE)
    detector = HotStreakDetector(store, duration_sec=180, cooldown_sec=300)
    detector.detect('pool-1', {'p1': 8}, now)

    # Window closed at +180s but the cooldown runs until +300s after creation
    assert detector.detect('pool-1', {'p1': 8}, now + timedelta(seconds=250)) == []
    assert detector.detect('pool-1', {'p1': 8}, now + timedelta(seconds=299)) == []
    assert len(detector.detect('pool-1', {'p1': 8}, now + timedelta(seconds=300))) == 1

    events = _events()
    assert len(events) == 2
    assert events[1].created_at - events[0].created_at >= timedelta(seconds=300)


def test_active_window_is_half_open(store, make_pool, now):
    make_pool(status=LIVE)
    detector = HotStreakDetector(store, duration_sec=180, cooldown_sec=0)
    detector.detect('pool-1', {'p1': 8}, now)

    assert store.get_active_event('pool-1', 'p1', now) is not None
    assert store.get_active_event('pool-1', 'p1', now + timedelta(seconds=179)) is not None
    assert store.get_active_event('pool-1', 'p1', now + timedelta(seconds=180)) is None
    # At the exact end instant the old window no longer counts as active
    assert len(detector.detect('pool-1', {'p1': 8}, now + timedelta(seconds=180))) == 1


def test_long_window_still_blocks_after_cooldown(store, make_pool, now):
    make_pool(status=LIVE)
    detector = HotStreakDetector(store, duration_sec=600, cooldown_sec=300)
    detector.detect('pool-1', {'p1': 8}, now)
    assert detector.detect('pool-1', {'p1': 8}, now + timedelta(seconds=400)) == []


def test_never_two_active_windows_over_many_ticks(store, make_pool, now):
    make_pool(status=LIVE)
    detector = HotStreakDetector(store)
    t = now
    for _ in range(30):
        detector.detect('pool-1', {'p1': 10, 'p2': 10}, t)
        t += timedelta(seconds=60)

    for player_id in ('p1', 'p2'):
        events = _events(player_id=player_id)
        assert len(events) > 1
        probe = now
        while probe < t:
            assert sum(1 for e in events if e.is_active(probe)) <= 1
            probe += timedelta(seconds=15)
        for earlier, later in zip(events, events[1:]):
            assert later.created_at - earlier.created_at >= timedelta(seconds=300)


def test_players_are_independent(store, make_pool, now):
    make_pool(status=LIVE)
    created = HotStreakDetector(store).detect('pool-1', {'p1': 7, 'p2': 7}, now)
    assert sorted(e.player_id for e in created) == ['p1', 'p2']


def test_active_streaks_reports_time_left(store, make_pool, now):
    make_pool(status=LIVE)
    HotStreakDetector(store, duration_sec=180).detect('pool-1', {'p1': 7}, now)

    streaks = active_streaks(store, 'pool-1', now + timedelta(seconds=30))
    assert len(streaks) == 1
    assert streaks[0]['player_id'] == 'p1'
    assert streaks[0]['ends_in_seconds'] == 150
    assert active_streaks(store, 'pool-1', now + timedelta(seconds=200)) == []
