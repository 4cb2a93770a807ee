"""Core utilities: constants, logging, exceptions."""

from treasurylens.core.exceptions import TreasuryLensError
from treasurylens.core.logging import get_logger, setup_logging

__all__ = [
    "TreasuryLensError",
    "get_logger",
    "setup_logging",
]
