"""
Flask Application Factory
=========================

Factory pattern for creating Flask application instances with
proper initialization.
"""

from datetime import datetime, timezone

from dotenv import load_dotenv
from flask import Flask

from screencraft import __version__
from screencraft.config.settings import get_config
from screencraft.paths import ENV_FILE
from screencraft.utils.logging_config import get_logger, setup_application_logging

logger = get_logger('factory')


def create_app(config_name: str = 'default') -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration environment name

    Returns:
        Configured Flask application
    """
    # Load .env early so OPENROUTER_API_KEY, FIGMA_API_TOKEN & LOG_LEVEL are present
    env_loaded = ENV_FILE.exists() and load_dotenv(ENV_FILE, override=False)

    config_class = get_config(config_name)
    config_class.refresh()

    setup_application_logging()
    if env_loaded:
        logger.info(f"Loaded .env from {ENV_FILE}")
    else:
        logger.debug(f".env not found at {ENV_FILE}")

    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get('OPENROUTER_API_KEY'):
        logger.warning("OPENROUTER_API_KEY is not set; generation requests will fail")

    from screencraft.routes import register_blueprints
    register_blueprints(app)

    @app.route('/health')
    def health_check():
        return {
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': __version__,
        }

    logger.info(f"Application created with '{config_name}' configuration")
    return app
