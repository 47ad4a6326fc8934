"""Screencraft: screen images in, runnable projects out."""

__version__ = "0.1.0"
