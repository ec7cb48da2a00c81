"""
Health check endpoint.
"""

from flask import current_app, jsonify

from database import get_db


def register_routes(bp):
    """Register health routes on the blueprint."""

    @bp.route('/health')
    def health_check():
        """
        Health check endpoint (no authentication required).

        Returns:
            JSON with status, version and database reachability
        """
        get_db().execute('SELECT 1').fetchone()
        return jsonify({
            'status': 'ok',
            'version': current_app.config.get('APP_VERSION', '1.0.0'),
            'app': current_app.config.get('APP_NAME', 'CabanaClub')
        })
