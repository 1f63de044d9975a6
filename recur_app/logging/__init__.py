"""
Logging configuration and utilities for the anchor clock.
"""
from .config import configure_logging, get_logger, get_store_logger

__all__ = ["configure_logging", "get_logger", "get_store_logger"]
