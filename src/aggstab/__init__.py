"""
aggstab - soil aggregate stability from laser-diffraction particle sizes.

Modules:
    config      – paths, constants and WorkflowConfig
    ingest      – archive download and CSV readers
    validators  – pandera schemas of the input tables
    transform   – closure and centered log-ratio
    casi        – Compositional Aggregate Stability Index
    models      – quantile bounds and the multilevel model
    profiling   – summary tables, map and ternary figures
    plots       – boxplots and site-effect plot
    report      – HTML report
    pipeline    – end-to-end run
"""

from .config import WorkflowConfig
from .transform import closure, clr_transform, compositional_transform, restrict_treatments
from .casi import CasiResult, derive_casi, compute_casi, reference_compositions, merge_covariates
from .models import (
    Term, ModelSpec, ModelFitError, QUANTILE_SPEC, MULTILEVEL_SPEC,
    fit_quantile_bounds, label_extremes, flag_extremes, fit_multilevel,
)
from .pipeline import WorkflowResult, run_workflow

__all__ = [
    "WorkflowConfig",
    "closure", "clr_transform", "compositional_transform", "restrict_treatments",
    "CasiResult", "derive_casi", "compute_casi", "reference_compositions", "merge_covariates",
    "Term", "ModelSpec", "ModelFitError", "QUANTILE_SPEC", "MULTILEVEL_SPEC",
    "fit_quantile_bounds", "label_extremes", "flag_extremes", "fit_multilevel",
    "WorkflowResult", "run_workflow",
]

__version__ = "0.1.0"
