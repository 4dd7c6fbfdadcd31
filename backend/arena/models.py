from datetime import datetime, timezone

from sqlalchemy.types import DateTime, TypeDecorator

from arena import db

# Pool statuses. Two equivalent lanes, phase for phase:
#   maintenance loop: OPEN -> LOCKED -> CLOSED
#   scoring loop:     SCHEDULED -> LIVE -> FINAL
SCHEDULED = 'SCHEDULED'
OPEN = 'OPEN'
LIVE = 'LIVE'
LOCKED = 'LOCKED'
FINAL = 'FINAL'
CLOSED = 'CLOSED'

SCORING_LANE = (SCHEDULED, LIVE, FINAL)
MAINTENANCE_LANE = (OPEN, LOCKED, CLOSED)

PRE_LOCK, IN_PLAY, SETTLED = 0, 1, 2

ACTIVE_STATUSES = (SCHEDULED, OPEN, LIVE, LOCKED)
IN_PLAY_STATUSES = (LIVE, LOCKED)


def utcnow():
    return datetime.now(timezone.utc)


def lane_of(status):
    if status in SCORING_LANE:
        return SCORING_LANE
    if status in MAINTENANCE_LANE:
        return MAINTENANCE_LANE
    raise ValueError(f'unknown pool status: {status!r}')


def phase_of(status):
    return lane_of(status).index(status)


def isoformat(value):
    return value.isoformat() if value else None


class UTCDateTime(TypeDecorator):
    """Stores UTC instants as naive UTC and hands back aware datetimes.

    SQLite drops tzinfo on DateTime columns, so normalise on the way in and
    re-attach UTC on the way out.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Pool(db.Model):
    __tablename__ = 'pool'
    pool_id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=True)
    date = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD of the event
    sr_game_id = db.Column(db.String(64), nullable=True)
    home_team = db.Column(db.String(8), nullable=True)
    away_team = db.Column(db.String(8), nullable=True)
    lock_time = db.Column(UTCDateTime, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=OPEN, index=True)
    created_at = db.Column(UTCDateTime, nullable=False, default=utcnow)

    def can_advance_to(self, status):
        """True when `status` is a later phase in this pool's own lane."""
        if status not in lane_of(self.status):
            return False
        return phase_of(status) > phase_of(self.status)

    def to_dict(self):
        return {
            'pool_id': self.pool_id,
            'name': self.name,
            'date': self.date,
            'sr_game_id': self.sr_game_id,
            'home_team': self.home_team,
            'away_team': self.away_team,
            'lock_time': isoformat(self.lock_time),
            'status': self.status,
        }


class RosterSnapshot(db.Model):
    __tablename__ = 'roster_snapshot'
    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey('pool.pool_id'), nullable=False, index=True)
    source = db.Column(db.String(32), nullable=False, default='demo')
    captured_at = db.Column(UTCDateTime, nullable=False, default=utcnow)
    players = db.Column(db.JSON, nullable=False)  # [{id, name, team, position, price}, ...]


class PlayerStat(db.Model):
    __tablename__ = 'player_stat'
    pool_id = db.Column(db.String(64), db.ForeignKey('pool.pool_id'), primary_key=True)
    player_id = db.Column(db.String(64), primary_key=True)
    points = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(UTCDateTime, nullable=False, default=utcnow)


class HotStreakEvent(db.Model):
    __tablename__ = 'hot_streak_event'
    __table_args__ = (
        db.Index('ix_hot_streak_pool_player_created', 'pool_id', 'player_id', 'created_at'),
    )
    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey('pool.pool_id'), nullable=False)
    player_id = db.Column(db.String(64), nullable=False)
    start_at = db.Column(UTCDateTime, nullable=False)
    end_at = db.Column(UTCDateTime, nullable=False)
    multiplier = db.Column(db.Float, nullable=False)
    trigger_note = db.Column(db.String(128), nullable=True)
    created_at = db.Column(UTCDateTime, nullable=False)

    def is_active(self, now):
        return self.start_at <= now < self.end_at

    def to_dict(self, now=None):
        data = {
            'player_id': self.player_id,
            'start_at': isoformat(self.start_at),
            'end_at': isoformat(self.end_at),
            'multiplier': self.multiplier,
            'trigger_note': self.trigger_note,
        }
        if now is not None:
            data['ends_in_seconds'] = max(0, int((self.end_at - now).total_seconds()))
        return data


class Entry(db.Model):
    __tablename__ = 'entry'
    entry_id = db.Column(db.String(64), primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey('pool.pool_id'), nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)
    player_ids = db.Column(db.JSON, nullable=False)  # ordered roster of player ids
    total_cost = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(UTCDateTime, nullable=False, default=utcnow)
    score = db.relationship('EntryScore', uselist=False, back_populates='entry')


class EntryScore(db.Model):
    __tablename__ = 'entry_score'
    entry_id = db.Column(db.String(64), db.ForeignKey('entry.entry_id'), primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey('pool.pool_id'), nullable=False, index=True)
    points_total = db.Column(db.Float, nullable=False, default=0)
    hot_streak_bonus_total = db.Column(db.Float, nullable=False, default=0)
    updated_at = db.Column(UTCDateTime, nullable=False)
    entry = db.relationship('Entry', back_populates='score')

    @property
    def total_score(self):
        return (self.points_total or 0) + (self.hot_streak_bonus_total or 0)


class LeaderboardCache(db.Model):
    __tablename__ = 'leaderboard_cache'
    pool_id = db.Column(db.String(64), db.ForeignKey('pool.pool_id'), primary_key=True)
    rows = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(UTCDateTime, nullable=False)

    def to_dict(self):
        return {
            'pool_id': self.pool_id,
            'updated_at': isoformat(self.updated_at),
            'rows': self.rows or [],
        }
