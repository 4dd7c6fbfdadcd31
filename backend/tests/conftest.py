import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure the backend root (containing the `arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arena import create_app, db, socketio
from arena.models import SCHEDULED, Entry, Pool
from arena.services.pools.store import PoolStore


NOW = datetime(2026, 1, 15, 20, 0, 0, tzinfo=timezone.utc)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STAT_SOURCE = 'demo'
    DEMO_ROSTERS = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import arena.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def store(flask_app):
    return PoolStore()


@pytest.fixture()
def make_pool(flask_app):
    def _make(pool_id='pool-1', lock_time=NOW, status=SCHEDULED, **fields):
        pool = Pool(pool_id=pool_id, lock_time=lock_time, status=status, created_at=NOW - timedelta(hours=1), **fields)
        db.session.add(pool)
        db.session.commit()
        return pool
    return _make


@pytest.fixture()
def make_entry(flask_app):
    def _make(entry_id, pool_id='pool-1', player_ids=(), created_at=None, username=None, total_cost=0):
        entry = Entry(
            entry_id=entry_id,
            pool_id=pool_id,
            username=username or f"user-{entry_id}",
            player_ids=list(player_ids) if isinstance(player_ids, (list, tuple)) else player_ids,
            total_cost=total_cost,
            created_at=created_at or NOW - timedelta(minutes=30),
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    return _make
