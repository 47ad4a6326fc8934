"""
Application Configuration
========================

Configuration settings for different environments.
"""

import os


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    """Base configuration class."""

    # Basic Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    MAX_CONTENT_LENGTH = _env_int('MAX_CONTENT_LENGTH', 32 * 1024 * 1024)
    JSON_SORT_KEYS = False

    # Inference backend (OpenRouter chat completions)
    OPENROUTER_API_KEY = os.environ.get('OPENROUTER_API_KEY', '')
    OPENROUTER_API_URL = os.environ.get('OPENROUTER_API_URL', 'https://openrouter.ai/api/v1/chat/completions')
    OPENROUTER_MODEL = os.environ.get('OPENROUTER_MODEL', 'google/gemini-2.0-flash-001')
    OPENROUTER_SITE_URL = os.environ.get('OPENROUTER_SITE_URL', 'https://screencraft.local')
    OPENROUTER_SITE_NAME = os.environ.get('OPENROUTER_SITE_NAME', 'Screencraft')

    # Retry policy
    INFERENCE_MAX_ATTEMPTS = _env_int('INFERENCE_MAX_ATTEMPTS', 3)
    INFERENCE_BACKOFF_SECONDS = _env_float('INFERENCE_BACKOFF_SECONDS', 1.0)
    INFERENCE_TIMEOUT = _env_int('INFERENCE_TIMEOUT', 300)
    INFERENCE_TEMPERATURE = _env_float('INFERENCE_TEMPERATURE', 0.3)
    INFERENCE_MAX_TOKENS = _env_int('INFERENCE_MAX_TOKENS', 32000)

    # Progress staging between strategy steps (seconds)
    GENERATION_STEP_DELAY = _env_float('GENERATION_STEP_DELAY', 0.0)

    # Design import
    FIGMA_API_TOKEN = os.environ.get('FIGMA_API_TOKEN', '')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    @classmethod
    def refresh(cls) -> None:
        """Re-read environment-driven settings (after .env is loaded)."""
        cls.OPENROUTER_API_KEY = os.environ.get('OPENROUTER_API_KEY', '')
        cls.OPENROUTER_API_URL = os.environ.get('OPENROUTER_API_URL', cls.OPENROUTER_API_URL)
        cls.OPENROUTER_MODEL = os.environ.get('OPENROUTER_MODEL', cls.OPENROUTER_MODEL)
        cls.OPENROUTER_SITE_URL = os.environ.get('OPENROUTER_SITE_URL', cls.OPENROUTER_SITE_URL)
        cls.OPENROUTER_SITE_NAME = os.environ.get('OPENROUTER_SITE_NAME', cls.OPENROUTER_SITE_NAME)
        cls.INFERENCE_MAX_ATTEMPTS = _env_int('INFERENCE_MAX_ATTEMPTS', cls.INFERENCE_MAX_ATTEMPTS)
        cls.INFERENCE_BACKOFF_SECONDS = _env_float('INFERENCE_BACKOFF_SECONDS', cls.INFERENCE_BACKOFF_SECONDS)
        cls.INFERENCE_TIMEOUT = _env_int('INFERENCE_TIMEOUT', cls.INFERENCE_TIMEOUT)
        cls.GENERATION_STEP_DELAY = _env_float('GENERATION_STEP_DELAY', cls.GENERATION_STEP_DELAY)
        cls.FIGMA_API_TOKEN = os.environ.get('FIGMA_API_TOKEN', '')
        cls.LOG_LEVEL = os.environ.get('LOG_LEVEL', cls.LOG_LEVEL)


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    OPENROUTER_API_KEY = 'test-key'
    INFERENCE_BACKOFF_SECONDS = 0.0
    GENERATION_STEP_DELAY = 0.0

    @classmethod
    def refresh(cls) -> None:
        # Tests pin their settings; environment changes are ignored
        return None


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig,
}


def get_config(config_name: str = 'default'):
    """Return the configuration class registered under ``config_name``."""
    return config.get(config_name, DevelopmentConfig)
