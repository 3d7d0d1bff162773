"""
Data Models Layer.

This package contains the Pydantic configuration model and the dataclass that
records the outcome of a workaround run.
"""

from .config import WorkaroundConfig
from .report import ApplyReport

__all__ = ["ApplyReport", "WorkaroundConfig"]
