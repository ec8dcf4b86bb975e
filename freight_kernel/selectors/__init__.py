"""Selectors for the freight kernel (read side)."""

from freight_kernel.selectors.base import BaseSelector
from freight_kernel.selectors.record_selector import RecordSelector

__all__ = ["BaseSelector", "RecordSelector"]
