from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Ensure models are registered on the metadata before migrations/create_all
    from arena import models  # noqa: F401

    from arena.api.pools import pools, health
    flask_app.register_blueprint(health)
    flask_app.register_blueprint(pools, url_prefix='/api/pools')

    from arena.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from arena.services.pools.engine import build_engine
    engine = build_engine(flask_app)
    flask_app.extensions['pool_engine'] = engine

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with demo pools."""
        from arena.models import utcnow
        from arena.services.pools.seed import seed_demo_pools
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            seeded = seed_demo_pools(utcnow())
            engine.lifecycle.ensure_open_pool()
            click.echo(f'Database has been reset and seeded with {len(seeded)} demo pools!')

    @click.command('maintain-pools')
    def maintain_pools_command():
        """Runs one pool maintenance pass."""
        with flask_app.app_context():
            result = engine.lifecycle.maintain_pools()
            click.echo(f"locked={result['locked']} closed={result['closed']}")

    @click.command('scoring-tick')
    def scoring_tick_command():
        """Runs one scoring tick across all active pools."""
        with flask_app.app_context():
            result = engine.scheduler.run_tick()
            click.echo(f"pools={result['pools']} scored={result['scored']} failed={result['failed']}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(maintain_pools_command)
    flask_app.cli.add_command(scoring_tick_command)

    return flask_app
