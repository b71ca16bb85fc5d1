from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from draughts_arena.services import sessions as session_services
    session_services.init_app(flask_app)

    # Import and register blueprints here
    from draughts_arena.main import main
    flask_app.register_blueprint(main)

    from draughts_arena.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api')

    from draughts_arena.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from draughts_arena.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from draughts_arena.errors import GameError

    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        flask_app.logger.info(f"[reject] code={exc.code} status={exc.status_code} error={exc.message}")
        return jsonify(exc.to_dict()), exc.status_code

    # Flask-Login user loader
    from draughts_arena.models import Player

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(Player, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "error": "Authentication required", "code": "UNAUTHENTICATED"}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed players; the last one administers token top-ups
            seeds = [
                ('testuser1', 'user'),
                ('testuser2', 'user'),
                ('testuser3', 'user'),
                ('admin', 'admin'),
            ]
            for username, role in seeds:
                player = Player(
                    username=username,
                    email=f"{username}@example.com",
                    role=role,
                    tokens=flask_app.config.get('INITIAL_TOKENS', 10),
                    score=0,
                )
                player.set_password('password')
                db.session.add(player)

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('sweep-timeouts')
    def sweep_timeouts_command():
        """Finalizes every Ongoing session whose side to move timed out."""
        from draughts_arena.services.sessions.scheduler import sweep_timed_out_sessions
        finalized = sweep_timed_out_sessions(flask_app)
        print(f"Timed out {len(finalized)} session(s): {finalized}")

    @click.command('verify-ledger')
    @click.argument('session_id', type=int)
    def verify_ledger_command(session_id):
        """Replays a session's ledger and compares it with the stored board."""
        from draughts_arena.models import GameSession
        from draughts_arena.services.sessions import get_rules
        from draughts_arena.services.sessions.ledger import MoveLedger, replay
        with flask_app.app_context():
            session = db.session.get(GameSession, session_id)
            if session is None:
                raise click.ClickException(f"Session {session_id} not found")
            try:
                board = replay(get_rules(), session.initial_board, MoveLedger(session.id).entries())
            except ValueError as exc:
                raise click.ClickException(str(exc))
            if board != session.board:
                raise click.ClickException(f"Session {session_id}: replayed board differs from the stored board")
            print(f"Session {session_id}: {session.total_moves} move(s) replay to the stored board.")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(sweep_timeouts_command)
    flask_app.cli.add_command(verify_ledger_command)

    from draughts_arena.services.sessions.scheduler import schedule_timeout_sweep
    schedule_timeout_sweep(flask_app)

    return flask_app
