from datetime import timedelta

from arena import db
from arena.models import SCHEDULED, Entry, Pool
from .rosters import DEMO_PLAYERS

DEMO_GAMES = [
    # (game id, home, away, hours until lock, day offset)
    ('demo-game-1', 'LAL', 'GSW', 2, 0),
    ('demo-game-2', 'MIL', 'BOS', 4, 0),
    ('demo-game-3', 'GSW', 'MIL', 26, 1),
]

DEMO_USERS = ['testuser1', 'testuser2', 'testuser3']


def seed_demo_pools(now):
    """Insert scheduled demo pools with a few demo entries each."""
    pools = []
    for game_id, home, away, hours, day_offset in DEMO_GAMES:
        day = (now + timedelta(days=day_offset)).date().isoformat()
        pool = Pool(
            pool_id=f"{day}_{game_id}",
            name=f"{away} @ {home}",
            date=day,
            sr_game_id=game_id,
            home_team=home,
            away_team=away,
            lock_time=now + timedelta(hours=hours),
            status=SCHEDULED,
            created_at=now,
        )
        db.session.add(pool)
        for i, username in enumerate(DEMO_USERS):
            picks = DEMO_PLAYERS[i * 5:(i + 1) * 5]
            db.session.add(Entry(
                entry_id=f"{pool.pool_id}:{username}",
                pool_id=pool.pool_id,
                username=username,
                player_ids=[p['id'] for p in picks],
                total_cost=sum(p['price'] for p in picks),
                created_at=now + timedelta(seconds=i),
            ))
        pools.append(pool)
    db.session.commit()
    return pools
