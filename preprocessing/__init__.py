"""
Preprocessing Layer

Preprocessing recipe: correlation filtering, normalization and categorical
encoding, fit on the training subset only.
"""

from .recipe import (
    CorrelationFilter,
    PreprocessingRecipe
)

__all__ = [
    'CorrelationFilter',
    'PreprocessingRecipe',
]
