"""
Parameter Store Module.

Handles declaration and storage of:
- Parameter entries with defaults, descriptions and JSON-schema checks.
- Nested subsections entered and left by the traversal passes.
- Whole-tree loading from and export to nested mappings and JSON schemas.
"""

from acceptor.store.parameter_handler import (
    ParameterError,
    ParameterHandler,
    ParameterStore,
    SubsectionError,
)
from acceptor.store.schema import SchemaValidationError

__all__ = [
    "ParameterError",
    "ParameterHandler",
    "ParameterStore",
    "SubsectionError",
    "SchemaValidationError",
]
