from flask import current_app

from arena.models import utcnow

DEMO_PLAYERS = [
    {'id': 'p1', 'name': 'LeBron James', 'team': 'LAL', 'position': 'SF', 'price': 4},
    {'id': 'p2', 'name': 'Stephen Curry', 'team': 'GSW', 'position': 'PG', 'price': 4},
    {'id': 'p3', 'name': 'Giannis Antetokounmpo', 'team': 'MIL', 'position': 'PF', 'price': 4},
    {'id': 'p4', 'name': 'Luka Doncic', 'team': 'DAL', 'position': 'PG', 'price': 4},
    {'id': 'p5', 'name': 'Nikola Jokic', 'team': 'DEN', 'position': 'C', 'price': 4},
    {'id': 'p6', 'name': 'Jayson Tatum', 'team': 'BOS', 'position': 'SF', 'price': 3},
    {'id': 'p7', 'name': 'Kevin Durant', 'team': 'PHX', 'position': 'SF', 'price': 3},
    {'id': 'p8', 'name': 'Joel Embiid', 'team': 'PHI', 'position': 'C', 'price': 3},
    {'id': 'p9', 'name': 'Damian Lillard', 'team': 'MIL', 'position': 'PG', 'price': 3},
    {'id': 'p10', 'name': 'Anthony Davis', 'team': 'LAL', 'position': 'PF', 'price': 3},
    {'id': 'p11', 'name': 'Devin Booker', 'team': 'PHX', 'position': 'SG', 'price': 2},
    {'id': 'p12', 'name': 'Ja Morant', 'team': 'MEM', 'position': 'PG', 'price': 2},
    {'id': 'p13', 'name': 'Trae Young', 'team': 'ATL', 'position': 'PG', 'price': 2},
    {'id': 'p14', 'name': 'Zion Williamson', 'team': 'NOP', 'position': 'PF', 'price': 2},
    {'id': 'p15', 'name': 'Bam Adebayo', 'team': 'MIA', 'position': 'C', 'price': 2},
    {'id': 'p16', 'name': "De'Aaron Fox", 'team': 'SAC', 'position': 'PG', 'price': 1},
    {'id': 'p17', 'name': 'Tyrese Haliburton', 'team': 'IND', 'position': 'PG', 'price': 1},
    {'id': 'p18', 'name': 'Paolo Banchero', 'team': 'ORL', 'position': 'PF', 'price': 1},
    {'id': 'p19', 'name': 'Franz Wagner', 'team': 'ORL', 'position': 'SF', 'price': 1},
    {'id': 'p20', 'name': 'Cade Cunningham', 'team': 'DET', 'position': 'PG', 'price': 1},
]


def generate_demo_roster(home_team=None, away_team=None):
    """Full demo catalogue, players from the two teams first."""
    teams = {home_team, away_team} - {None}
    playing = [dict(p) for p in DEMO_PLAYERS if p['team'] in teams]
    rest = [dict(p) for p in DEMO_PLAYERS if p['team'] not in teams]
    for p in playing + rest:
        p['injury_status'] = None
    return playing + rest


class RosterProvider:
    def get_roster(self, pool_id):
        raise NotImplementedError


class SnapshotRosterProvider(RosterProvider):
    """Latest stored roster snapshot for a pool.

    With `generate_demo` set, a pool without a snapshot gets a demo roster
    saved on first use so every later tick sees the same players.
    """

    def __init__(self, store, generate_demo=False, clock=utcnow):
        self.store = store
        self.generate_demo = generate_demo
        self.clock = clock

    def get_roster(self, pool_id):
        players = self.store.get_latest_roster(pool_id)
        if players:
            return players
        if not self.generate_demo:
            return []
        pool = self.store.get_pool(pool_id)
        if pool is None:
            return []
        players = generate_demo_roster(pool.home_team, pool.away_team)
        self.store.save_roster_snapshot(pool_id, 'demo', players, self.clock())
        current_app.logger.info(f"[roster] pool={pool_id} generated demo roster players={len(players)}")
        return players
