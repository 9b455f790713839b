"""Utility functions for ethosync."""

from ethosync.utils.logging import get_logger, level_for

__all__ = ["get_logger", "level_for"]
