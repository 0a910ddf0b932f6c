"""
Statistical models for the CASI workflow.

- spec: typed fixed/random-effect specifications
- quantile: quantile-regression bounds and extreme-value labels
- multilevel: nested random-intercepts model
"""

from .spec import Term, ModelSpec, ModelFitError, QUANTILE_SPEC, MULTILEVEL_SPEC
from .quantile import (
    QuantileBounds,
    fit_quantile_bounds,
    label_extremes,
    flag_extremes,
    display_subset,
)
from .multilevel import MultilevelResult, fit_multilevel, significance_stars

__all__ = [
    "Term", "ModelSpec", "ModelFitError", "QUANTILE_SPEC", "MULTILEVEL_SPEC",
    "QuantileBounds", "fit_quantile_bounds", "label_extremes", "flag_extremes",
    "display_subset",
    "MultilevelResult", "fit_multilevel", "significance_stars",
]
