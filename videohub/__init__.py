import logging
import os
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from dotenv import load_dotenv
import sqlalchemy as sa

load_dotenv()

# Initialize extensions
db = SQLAlchemy()

def create_app(config_name=None, **overrides):
    app = Flask(__name__)
    
    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')
    
    app.config.from_object(f'config.{config_name.capitalize()}Config')
    app.config.update(overrides)
    
    # Initialize Sentry
    if app.config.get('SENTRY_DSN'):
        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=1.0,
            environment=config_name
        )
    
    # Initialize extensions
    db.init_app(app)
    CORS(app)
    
    # Import models to ensure they are registered with SQLAlchemy
    from videohub import models
    
    # Register blueprints
    from videohub.admin import bp as admin_bp
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    
    with app.app_context():
        try:
            init_database(app)
        except Exception:
            db.engine.dispose()
            raise
    
    return app

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()

def init_database(app):
    """Enforce foreign keys on SQLite and create any missing tables"""
    if db.engine.dialect.name == 'sqlite':
        sa.event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)
    
    db.create_all()
    app.logger.debug(f"Database ready: {db.engine.url.render_as_string(hide_password=True)}")

def configure_logging(level='INFO'):
    """Root logger setup for the script and server entry points"""
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
