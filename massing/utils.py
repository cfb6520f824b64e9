import logging
import os
import time
from functools import wraps

logger = logging.getLogger(__name__)

# Configuration defaults
OUTPUT_DIR = 'exports'
MAX_RESOLUTION = 256  # Grid side length is clamped to this
RESOLUTION_STEP = 10  # Grid cells per complexity unit
MERGE_THRESHOLD = 0.05  # Cells at or below this height are empty
OBJ_PRECISION = 4  # Decimal digits for exported coordinates
DEFAULT_SITE_WIDTH = 20.0  # World units spanned by the whole grid
DEFAULT_HEIGHT_MULTIPLIER = 5.0  # World units for a cell of height 1.0


def timed(func):
    """Decorator to log the execution time of a function."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        result = func(*args, **kwargs)
        t1 = time.perf_counter()
        logger.debug(f"[TIMING] {func.__name__:25s}: {t1 - t0:0.3f}s")
        return result

    return wrapper


def ensure_dir(path):
    """Ensures that a directory exists, creating it if necessary."""
    if path and not os.path.exists(path):
        os.makedirs(path)
