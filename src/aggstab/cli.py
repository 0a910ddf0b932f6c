"""Command-line entry point: ``aggstab --data-dir DATA --output-dir OUT``."""
from __future__ import annotations
import argparse
import logging

from .config import RAW, OUTPUT, WorkflowConfig
from .pipeline import run_workflow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aggstab",
        description="Derive CASI from LDPSA fractions, flag extremes and fit the multilevel model",
    )
    parser.add_argument("--data-dir", default=str(RAW), help="Directory holding the input CSV files")
    parser.add_argument("--output-dir", default=str(OUTPUT), help="Directory for tables, figures and the report")
    parser.add_argument("--measurements", default=None, help="Measurement CSV file name inside --data-dir")
    parser.add_argument("--covariates", default=None, help="Covariate CSV file name inside --data-dir")
    parser.add_argument("--archive-id", default=None, help="Remote archive id to download")
    parser.add_argument("--fetch", action="store_true", help="Download and unzip the archive before running")
    parser.add_argument("--no-report", action="store_true", help="Skip the HTML report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = {}
    if args.measurements:
        overrides["measurements_file"] = args.measurements
    if args.covariates:
        overrides["covariates_file"] = args.covariates
    if args.archive_id:
        overrides["archive_id"] = args.archive_id
    config = WorkflowConfig.from_dirs(args.data_dir, args.output_dir, **overrides)

    result = run_workflow(config, fetch=args.fetch, report=not args.no_report)
    print(result.model.fixed_effects.to_string())


if __name__ == "__main__":
    main()
