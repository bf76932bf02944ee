from .log import get_logger, setup_logging
from .fuzzy import closest_name

__all__ = ['get_logger', 'setup_logging', 'closest_name']
