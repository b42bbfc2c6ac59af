"""
Schema definitions using Pandera for data validation.
"""

from wlereport.schemas.dataset import LABEL_VALUES, label_schema

__all__ = [
    "LABEL_VALUES",
    "label_schema",
]
