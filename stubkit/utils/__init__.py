"""Utility helpers shared across stubkit."""

from .logging_setup import configure_logging, get_logger, setup_logging

__all__ = ["configure_logging", "get_logger", "setup_logging"]
