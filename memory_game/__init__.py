from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config
from memory_game.services.game.errors import GameError

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Live games are held in memory for the lifetime of the process
    from memory_game.sessions import EXTENSION_KEY, SessionRegistry
    registry = SessionRegistry.from_config(flask_app.config)
    flask_app.extensions[EXTENSION_KEY] = registry

    # Import and register blueprints here
    from memory_game.main import main
    flask_app.register_blueprint(main)

    from memory_game.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    # Register Socket.IO event handlers
    from memory_game.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('difficulty-table')
    @click.option('--max-score', default=40, show_default=True, help='Highest score to list.')
    @click.option('--variant', 'variant_name', default=None, help='Difficulty variant (defaults to DIFFICULTY_VARIANT).')
    def difficulty_table_command(max_score, variant_name):
        """Prints digit length and showing time for each score."""
        from memory_game.services.game.controller import GameSettings
        from memory_game.services.game.difficulty import generate_number, group_digits, length_for_score, question_duration_ms

        config = dict(flask_app.config)
        if variant_name:
            config['DIFFICULTY_VARIANT'] = variant_name
        try:
            settings = GameSettings.from_config(config)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint='--variant')
        click.echo(f"{'score':>5}  {'length':>6}  {'show_ms':>7}  sample")
        for score in range(max_score + 1):
            length = length_for_score(score, settings.difficulty)
            duration = question_duration_ms(length, settings.timing)
            click.echo(f"{score:>5}  {length:>6}  {duration:>7}  {group_digits(generate_number(length))}")

    @click.command('sessions')
    def sessions_command():
        """Lists live games in this process."""
        if not len(registry):
            click.echo('No live games.')
            return
        for code in registry.codes():
            with registry.locked(code) as controller:
                snap = controller.snapshot()
            click.echo(f"{code}  state={snap['state']}  score={snap['score']}  length={snap['current_length']}")

    flask_app.cli.add_command(difficulty_table_command)
    flask_app.cli.add_command(sessions_command)

    return flask_app
