"""
Simple usage example for the CASI workflow.

This script shows the stage-by-stage workflow on the measurement and
covariate tables, without writing the HTML report.
"""

import sys

from aggstab.config import WorkflowConfig
from aggstab.ingest import read_measurements, read_covariates
from aggstab.transform import compositional_transform
from aggstab.casi import derive_casi, merge_covariates
from aggstab.models import flag_extremes, fit_multilevel


def simple_usage_example(data_dir: str = "../data/raw", output_dir: str = "../output"):
    """Run each stage and print what it produced."""

    print("=== CASI workflow - Usage Example ===\n")

    config = WorkflowConfig.from_dirs(data_dir, output_dir)
    if not config.measurements_path.exists():
        print(f"Error: Data file not found at {config.measurements_path}")
        print("Run `aggstab --fetch --archive-id <id>` first or point data_dir at the CSV files.")
        return

    print("1. Loading tables...")
    ldpsa = read_measurements(config)
    covariates = read_covariates(config)
    print(f"   Loaded: {len(ldpsa)} measurements, {len(covariates)} covariate rows")

    print("\n2. Closure + CLR...")
    transformed = compositional_transform(ldpsa)
    print(transformed[["ssid", "trt", "csand", "csilt", "cclay"]].head())

    print("\n3. CASI...")
    casi = derive_casi(transformed)
    enriched = merge_covariates(casi.table, covariates)
    print(f"   ✓ {len(enriched)} rows scored, {casi.n_dropped_ssids} ssid(s) without reference")

    print("\n4. Extreme values (5% / 95% quantile regression)...")
    enriched = flag_extremes(enriched)
    print(enriched["extreme"].value_counts().to_string())

    print("\n5. Multilevel model...")
    model = fit_multilevel(enriched)
    print(model.fixed_effects.round(4).to_string())
    print("\n   Site effects:")
    print(model.group_effects.round(4).to_string(index=False))


if __name__ == "__main__":
    simple_usage_example(*sys.argv[1:3])
