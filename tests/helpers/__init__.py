"""Test helper utilities exposed for import convenience."""
from .model_files import DEFAULT_FILES, write_model

__all__ = [
    "DEFAULT_FILES",
    "write_model",
]
