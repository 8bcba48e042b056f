"""
Utilities package initialization.
"""
from .logger import get_logger, setup_logging
from .time import epoch_now, to_epoch_seconds, utc_now

__all__ = ["get_logger", "setup_logging", "epoch_now", "to_epoch_seconds", "utc_now"]
