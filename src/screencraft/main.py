"""
Main Application Entry Point
===========================

Runs the Screencraft HTTP API with the Flask development server.
"""

import os
import sys

from screencraft.factory import create_app
from screencraft.utils.logging_config import get_logger

logger = get_logger('main')


def main() -> int:
    """Main application entry point."""
    config_name = os.environ.get('FLASK_ENV', 'development')
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '0.0.0.0')
    debug = os.environ.get('DEBUG', 'true').lower() == 'true'

    try:
        app = create_app(config_name)
    except Exception as e:
        logger.error(f"Failed to create Flask application: {e}")
        return 1

    logger.info(f"Starting Screencraft in {config_name} mode on {host}:{port}")
    print(
        "Screencraft - screens to runnable projects\n"
        f"Environment: {config_name} | Debug: {debug}\n"
        f"Host: {host} | Port: {port}\n"
        "Endpoints: GET /health, GET /api/config-options, POST /api/generate, POST /api/import/figma\n"
    )

    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Application shutdown requested by user")
    return 0


if __name__ == '__main__':
    sys.exit(main())
