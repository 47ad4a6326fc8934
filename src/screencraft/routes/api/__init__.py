"""
API Routes Package
==================

- generation: config options, screen-to-project generation, Figma import
"""

from .generation import api_bp

__all__ = [
    'api_bp',
]
