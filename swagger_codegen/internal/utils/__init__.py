"""Утилиты для генератора"""

from .naming import (
    python_identifier,
    split_words,
    to_camel_case,
    to_pascal_case,
    to_snake_case,
    unique_name,
)

__all__ = [
    "python_identifier",
    "split_words",
    "to_camel_case",
    "to_pascal_case",
    "to_snake_case",
    "unique_name",
]
