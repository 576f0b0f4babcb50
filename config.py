import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'postgresql+psycopg://localhost/videohub'

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Sentry configuration
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Maintenance jobs
    PURGE_ATOMIC = os.environ.get('PURGE_ATOMIC', 'false').lower() in ['true', 'on', '1']
    SHORT_VIDEO_THRESHOLD = int(os.environ.get('SHORT_VIDEO_THRESHOLD') or 300)  # seconds
    LEGACY_HANDLE_PREFIX = os.environ.get('LEGACY_HANDLE_PREFIX') or 'UC'

    # Stats endpoint
    STATS_WORKERS = int(os.environ.get('STATS_WORKERS') or 2)

class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or 'sqlite:///app.db'

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite:///:memory:'
    LOG_LEVEL = 'DEBUG'

class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')

    # SQLAlchemy connection pooling for Cloud Run
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 3600,  # Recycle connections after 1 hour
        'pool_pre_ping': True,  # Verify connections before use
        'pool_timeout': 20,     # Wait up to 20 seconds for a connection
        'max_overflow': 10,
        'echo': False
    }

config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
