from arena import create_app, socketio
from arena.services.pools.engine import start_background_loops

app = create_app()

if __name__ == '__main__':
    # Only the serving process runs the maintenance and scoring loops
    start_background_loops(app, app.extensions['pool_engine'])
    # use_reloader=False keeps the scoring loops from starting twice
    socketio.run(app, debug=True, use_reloader=False)
