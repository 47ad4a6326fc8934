"""
Routes Package
Flask blueprints for the HTTP surface.
"""

from .api import api_bp


def register_blueprints(app) -> None:
    """Attach every blueprint to ``app``."""
    app.register_blueprint(api_bp)


__all__ = [
    'api_bp',
    'register_blueprints',
]
