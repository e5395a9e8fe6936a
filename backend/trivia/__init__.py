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
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from trivia.main import main
    flask_app.register_blueprint(main)

    from trivia.api.lobbies import lobbies
    # Mount lobby routes under /api to match frontend API client
    flask_app.register_blueprint(lobbies, url_prefix='/api/lobbies')

    from trivia.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Round engine; tests swap in a frozen clock via init_engine
    from trivia.services.rounds.engine import init_engine
    init_engine(flask_app)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo lobby."""
        from trivia.services.lobby import seed_demo_lobby
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            code = seed_demo_lobby(flask_app.extensions['trivia'])
            click.echo(f'Database has been reset and seeded! Demo lobby code: {code}')

    @click.command('run-due-timers')
    def run_due_timers_command():
        """Fires every due phase deadline (manual scheduler backend only)."""
        with flask_app.app_context():
            callbacks = flask_app.extensions['trivia'].callbacks
            if not hasattr(callbacks, 'run_due'):
                click.echo('Scheduler backend fires timers on its own; nothing to do.')
                return
            results = callbacks.run_due()
            click.echo(f'Fired {len(results)} timer(s).')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(run_due_timers_command)

    return flask_app
