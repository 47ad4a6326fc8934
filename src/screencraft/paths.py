"""Centralized path constants for prompt templates and runtime folders.

All code should import from here instead of hardcoding paths.
"""
from __future__ import annotations
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parents[1]  # .../src/screencraft -> project root
SRC_DIR = PROJECT_ROOT / 'src'

# Jinja2 prompt templates ship inside the package
PROMPTS_DIR = PACKAGE_DIR / 'prompts'

LOGS_DIR = PROJECT_ROOT / 'logs'
ENV_FILE = PROJECT_ROOT / '.env'
