from flask import Blueprint, current_app, jsonify

from arena.models import isoformat, utcnow
from arena.services.pools.streaks import active_streaks


pools = Blueprint('pools', __name__)
health = Blueprint('health', __name__)


def _engine():
    return current_app.extensions['pool_engine']


@health.route('/healthz', methods=['GET'])
def healthz():
    return jsonify({'ok': True, 'ts': isoformat(utcnow())})


@pools.route('/<string:pool_id>', methods=['GET'])
def get_pool(pool_id):
    pool = _engine().store.get_pool(pool_id)
    if pool is None:
        return jsonify({'error': 'Pool not found'}), 404
    return jsonify(pool.to_dict())


@pools.route('/<string:pool_id>/leaderboard', methods=['GET'])
def get_leaderboard(pool_id):
    engine = _engine()
    if engine.store.get_pool(pool_id) is None:
        return jsonify({'error': 'Pool not found'}), 404
    return jsonify(engine.leaderboard.get_leaderboard(pool_id))


@pools.route('/<string:pool_id>/hot-streaks', methods=['GET'])
def get_hot_streaks(pool_id):
    engine = _engine()
    if engine.store.get_pool(pool_id) is None:
        return jsonify({'error': 'Pool not found'}), 404
    return jsonify({
        'pool_id': pool_id,
        'hot_streaks': active_streaks(engine.store, pool_id, utcnow()),
    })
