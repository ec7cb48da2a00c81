"""
JSON API package.
Split into smaller modules by entity for maintainability.
"""

from flask import Blueprint

# Create the API blueprint
api_bp = Blueprint('api', __name__)

# Import and register routes from submodules
from blueprints.api import health
from blueprints.api import cabanas
from blueprints.api import pricing
from blueprints.api import reservations
from blueprints.api import sub_requests
from blueprints.api import extras
from blueprints.api import notifications

# Register all route functions on the blueprint
health.register_routes(api_bp)
cabanas.register_routes(api_bp)
pricing.register_routes(api_bp)
reservations.register_routes(api_bp)
sub_requests.register_routes(api_bp)
extras.register_routes(api_bp)
notifications.register_routes(api_bp)
