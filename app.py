"""
CabanaClub - Cabana Reservation Lifecycle & Pricing Engine
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager

# Import database functions
from database import close_db, init_db

from utils.api_response import api_error, api_exception
from utils.errors import ReservationError
from utils.messages import MESSAGES


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    config_class = config.get(config_name, config['default'])
    if hasattr(config_class, 'validate'):
        config_class.validate()
    app.config.from_object(config_class)

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    from blueprints.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')


def register_error_handlers(app):
    """Register JSON error handlers."""

    @app.errorhandler(ReservationError)
    def reservation_error(error):
        """Render domain errors with their status and machine code."""
        return api_exception(error)

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error('Recurso no encontrado', status=404, code='NOT_FOUND')

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error('Método no permitido', status=405, code='METHOD_NOT_ALLOWED')

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db is not None and db.in_transaction:
            db.rollback()
        app.logger.error(f"Unhandled error: {getattr(error, 'original_exception', error)}")
        return api_error(MESSAGES['internal_error'], status=500, code='INTERNAL_ERROR')


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('reconcile-cabana-status')
    @click.option('--dry-run', is_flag=True, help='Report drift without fixing it')
    @click.option('--date', 'day', default=None, help='Day to evaluate (YYYY-MM-DD, default today)')
    def reconcile_cabana_status_command(dry_run, day):
        """Recompute cabana status from committed reservations."""
        from models.cabana import reconcile_cabana_statuses
        from utils.datetime_helpers import get_today
        from utils.validators import validate_date_format

        with app.app_context():
            if day is None:
                day = get_today().isoformat()
            elif not validate_date_format(day):
                raise click.BadParameter('expected YYYY-MM-DD', param_hint='--date')

            drift = reconcile_cabana_statuses(day, dry_run=dry_run)

        if not drift:
            click.echo(f'No drift on {day}.')
            return
        for item in drift:
            click.echo(f"  {item['name']} (id {item['cabana_id']}): "
                       f"{item['current']} -> {item['expected']}")
        verb = 'would change' if dry_run else 'changed'
        click.echo(f'{len(drift)} cabana(s) {verb}.')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]'
        )
        file_handler = logging.FileHandler('logs/cabana.log')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        # Module loggers (models, utils) and the mail sink share the file
        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('CabanaClub startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)
        logging.basicConfig(level=logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
