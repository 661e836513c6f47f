"""
Utility modules for the dispatch core.
"""
from dispatch.utils.logging_config import configure_logging
from dispatch.utils.timezone_utils import ensure_utc, minutes_between

__all__ = ["configure_logging", "ensure_utc", "minutes_between"]
