from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
import os
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)
MIGRATIONS_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'migrations'))


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or Config.CORS_ORIGINS

    db.init_app(flask_app)
    migrate.init_app(flask_app, db, directory=MIGRATIONS_DIR)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Ensure models are registered with SQLAlchemy metadata
    from memory_game import models  # noqa: F401

    from memory_game.services.games.runtime import init_game_services
    init_game_services(flask_app, socketio)

    from memory_game.main import main
    flask_app.register_blueprint(main)

    from memory_game.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from memory_game.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('init-db')
    def init_db_command():
        """Creates the database tables without running migrations."""
        with flask_app.app_context():
            db.create_all()
        click.echo('Database tables created.')

    @click.command('high-scores')
    @click.option('--clear', is_flag=True, help='Erase every tier.')
    def high_scores_command(clear):
        """Prints the high score table, or clears it with --clear."""
        from memory_game.services.games.runtime import get_game_services
        store = get_game_services(flask_app).high_scores
        if clear:
            store.clear()
            click.echo('High scores cleared.')
            return
        for tier, records in store.load().items():
            click.echo(f'{tier}:')
            if not records:
                click.echo('  (none)')
            for rank, r in enumerate(records, start=1):
                click.echo(f'  {rank}. {r.score} pts ({r.moves} moves / {r.time_remaining}s left)')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(high_scores_command)

    @flask_app.errorhandler(404)
    def not_found(_):
        return jsonify({'error': 'Not found'}), 404

    return flask_app
