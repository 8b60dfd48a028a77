import json
import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from jackofhearts.config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from jackofhearts.main import main
    flask_app.register_blueprint(main)

    from jackofhearts.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Importing here binds the handlers to the initialized socketio instance
    from jackofhearts.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login resolves the session binding to a player row
    from jackofhearts.session import load_bound_player
    login_manager.user_loader(load_bound_player)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('show-game')
    @click.argument('game_code')
    def show_game_command(game_code):
        """Prints the current snapshot of a game."""
        from jackofhearts.services.games import store
        with flask_app.app_context():
            game = store.find_game(game_code)
            if not game:
                print(f'No game with code {game_code.upper()}')
                return
            print(json.dumps(store.snapshot(game), indent=2))

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(show_game_command)

    return flask_app
