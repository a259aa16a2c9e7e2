from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import uuid
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    from cogtrain.main import main
    flask_app.register_blueprint(main)

    from cogtrain.api.sessions import api
    # Mount session, stats and leaderboard routes under /api
    flask_app.register_blueprint(api, url_prefix='/api')

    # Flask-Login user loader
    from cogtrain.models import User

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(User, uuid.UUID(user_id))
        except ValueError:
            return None

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            emails = ['player1@example.com', 'player2@example.com', 'player3@example.com']
            for email in emails:
                user = User(email=email)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
