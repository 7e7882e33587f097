"""
Schema inference and comparison.
"""

from .inference import MIXED_TYPE, SchemaInferrer, compare_schemas, value_type_name

__all__ = [
    "MIXED_TYPE",
    "SchemaInferrer",
    "compare_schemas",
    "value_type_name",
]
