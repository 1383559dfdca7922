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
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

from initials.feed import ChangeFeed  # noqa: E402

feed = ChangeFeed(socketio)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from initials.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from initials.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Republish the scoreboard whenever answers or adjustments change
    from initials.services.games.scoreboard import watch_score_inputs
    watch_score_inputs(feed)

    @flask_app.route('/')
    def index():
        return {'message': 'Welcome to the INITIALS game server!'}

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates all tables."""
        import initials.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
