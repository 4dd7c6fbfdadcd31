from flask_socketio import join_room, leave_room, emit
from arena import socketio


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_pool(data):
    pool_id = (data or {}).get('pool_id')
    if not pool_id:
        emit('error', {'message': 'pool_id is required'})
        return
    room = f"pool:{pool_id}"
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_pool(data):
    pool_id = (data or {}).get('pool_id')
    if not pool_id:
        emit('error', {'message': 'pool_id is required'})
        return
    room = f"pool:{pool_id}"
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    Leaderboard and hot-streak pushes go to room ``pool:<pool_id>``.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_pool', handle_join_pool, namespace='/ws')
    socketio.on_event('leave_pool', handle_leave_pool, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_pool', handle_join_pool, namespace='/')
        socketio.on_event('leave_pool', handle_leave_pool, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
