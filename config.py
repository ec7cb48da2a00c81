"""
Flask application configuration classes.
Provides configuration for development, production, and testing environments.
"""

import os


def _env_bool(name: str, default: str) -> bool:
    """Read a boolean flag from the environment."""
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """Base configuration class with common settings."""

    # Secret key for session signing
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or 'instance/cabana_club.db'

    # Seconds a writer waits for the SQLite write lock before giving up
    LOCK_TIMEOUT_SECONDS = float(os.environ.get('LOCK_TIMEOUT_SECONDS', 15))

    # Post-commit side effects (notifications, email, broadcast, audit)
    SIDE_EFFECTS_ASYNC = _env_bool('SIDE_EFFECTS_ASYNC', 'true')
    SIDE_EFFECT_WORKERS = int(os.environ.get('SIDE_EFFECT_WORKERS', 4))

    # Header set by the upstream gateway after authenticating the caller
    AUTH_USER_HEADER = os.environ.get('AUTH_USER_HEADER') or 'X-User-Id'

    # Pagination
    ITEMS_PER_PAGE = 20
    MAX_ITEMS_PER_PAGE = 100

    # Timezone
    TIMEZONE = os.environ.get('TIMEZONE') or 'Europe/Istanbul'

    # Application settings
    APP_NAME = 'CabanaClub'
    APP_VERSION = '1.0.0'


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False

    SECRET_KEY = os.environ.get('SECRET_KEY') or Config.SECRET_KEY
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or Config.DATABASE_PATH

    @classmethod
    def validate(cls) -> None:
        """Validate that required production environment variables are set."""
        secret_key = os.environ.get('SECRET_KEY')
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters in production")
        if not os.environ.get('DATABASE_PATH'):
            raise ValueError("DATABASE_PATH environment variable must be set in production")


class TestConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    DATABASE_PATH = os.environ.get('DATABASE_PATH', ':memory:')
    SECRET_KEY = 'test-secret-key'
    # Run side effects inline so tests can assert on them
    SIDE_EFFECTS_ASYNC = False
    LOCK_TIMEOUT_SECONDS = 5


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'test': TestConfig,
    'default': DevelopmentConfig
}
