from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd

from .config import DISPERSIONS, WorkflowConfig
from .ingest import fetch_archive, read_measurements, read_covariates
from .transform import compositional_transform
from .casi import CasiResult, derive_casi, merge_covariates
from .models import (
    QuantileBounds, MultilevelResult,
    fit_quantile_bounds, flag_extremes, display_subset, fit_multilevel,
)
from .profiling import casi_summary, sample_counts, location_map, ternary_panels
from .plots import casi_boxplot, site_effects_plot
from .data_io import save_table, save_enriched
from .report import render_report

logger = logging.getLogger(__name__)


@dataclass
class WorkflowResult:
    enriched: pd.DataFrame
    casi: CasiResult
    bounds: QuantileBounds
    model: MultilevelResult
    report_path: Optional[Path] = None


def build_casi_table(config: WorkflowConfig) -> tuple[pd.DataFrame, CasiResult]:
    # ---- Load ----
    ldpsa = read_measurements(config)
    covariates = read_covariates(config)

    # ---- Composition + CASI ----
    transformed = compositional_transform(ldpsa, treatments=DISPERSIONS)
    casi = derive_casi(transformed)
    enriched = merge_covariates(casi.table, covariates, how="inner")
    return enriched, casi


def run_workflow(config: WorkflowConfig, fetch: bool = False, report: bool = True) -> WorkflowResult:
    """
    Run every stage once: (fetch), load, transform, CASI, extreme values,
    multilevel model, artifacts and (optionally) the HTML report.
    """
    if fetch:
        fetch_archive(config)

    enriched, casi = build_casi_table(config)

    # ---- Extreme values ----
    bounds = fit_quantile_bounds(enriched)
    enriched = flag_extremes(enriched, bounds)

    # ---- Multilevel model (all rows, extremes included) ----
    model = fit_multilevel(enriched)

    # ---- Artifacts ----
    summary = casi_summary(enriched)
    save_enriched(enriched, config)
    save_table(summary, "casi_summary.csv", config)
    save_table(model.fixed_effects, "fixed_effects.csv", config, index=True)
    save_table(model.group_effects, "site_effects.csv", config)
    save_table(model.nested_effects, "profile_effects.csv", config)
    logger.info("Wrote tables to %s", config.tables_dir)

    report_path = None
    if report:
        report_path = _write_report(config, enriched, casi, bounds, model, summary)
        logger.info("Wrote report to %s", report_path)

    return WorkflowResult(enriched=enriched, casi=casi, bounds=bounds, model=model,
                          report_path=report_path)


def _write_report(config, enriched, casi, bounds, model, summary) -> Path:
    sections = [
        ("Samples per sonication time and dispersion", sample_counts(enriched)),
        ("Samples without a reference measurement",
         f"{casi.n_dropped_rows} row(s) from {casi.n_dropped_ssids} ssid(s) dropped: "
         f"{', '.join(map(str, casi.dropped_ssids)) or 'none'}"),
        ("Sampling locations", location_map(enriched)),
    ]
    for name, fig in ternary_panels(enriched).items():
        sections.append((f"Ternary diagram: {name.replace('_', ', ')}", fig))

    figs = []
    for disp in DISPERSIONS:
        fig, _ = casi_boxplot(enriched, disp)
        figs.append(fig)
        sections.append((f"CASI by sonication time: {disp}", fig))
    fig, _ = casi_boxplot(display_subset(enriched, "water"), "water",
                          title="CASI by sonication time (water, extremes removed)")
    figs.append(fig)
    sections.append(("CASI by sonication time: water without extreme values", fig))
    sections.append(("CASI summary", summary))

    sections.append((f"Quantile bounds ({bounds.formula})",
                     pd.concat(bounds.params, names=["quantile", "term"])))
    sections.append((f"Fixed effects ({model.formula})", model.fixed_effects))
    sections.append(("Variance components", model.variance_components))
    fig, _ = site_effects_plot(model.group_effects)
    figs.append(fig)
    sections.append(("Site random intercepts", fig))

    try:
        return render_report(sections, config)
    finally:
        for f in figs:
            plt.close(f)
