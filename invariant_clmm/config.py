"""
Configuration settings for the Invariant CLMM simulator

Loads environment variables and provides simulation defaults.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from .constants import TICK_CROSSES_PER_IX, TICK_VIRTUAL_CROSSES_PER_IX
from .math.fixed_point import to_decimal

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """Simulation settings"""

    # Swap simulation limits (per instruction)
    MAX_CROSSES: int = int(os.getenv("INVARIANT_MAX_CROSSES", TICK_CROSSES_PER_IX))
    MAX_VIRTUAL_CROSSES: int = int(
        os.getenv("INVARIANT_MAX_VIRTUAL_CROSSES", TICK_VIRTUAL_CROSSES_PER_IX)
    )

    # Position optimizer binary search precision (10^12 scale, default 1%)
    POSITION_PRECISION: int = int(os.getenv("INVARIANT_POSITION_PRECISION", to_decimal(1, 2)))

    # Logging
    LOG_LEVEL: str = os.getenv("INVARIANT_LOG_LEVEL", "WARNING").upper()
    LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# Create global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the package logger

    Called by the command line entry point only; library users configure
    logging themselves.
    """
    package_logger = logging.getLogger("invariant_clmm")
    package_logger.setLevel(level or settings.LOG_LEVEL)

    if not any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        package_logger.addHandler(handler)


# Validate settings on import
if settings.MAX_CROSSES < 1:
    logger.warning("INVARIANT_MAX_CROSSES should be at least 1 (got %d)", settings.MAX_CROSSES)
if settings.POSITION_PRECISION <= 0:
    logger.warning(
        "INVARIANT_POSITION_PRECISION should be positive (got %d)", settings.POSITION_PRECISION
    )
