from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
DATA = ROOT / "data"
RAW = DATA / "raw"
OUTPUT = ROOT / "output"

# raw csv filenames as shipped in the archive
MEASUREMENTS_CSV = "ldpsa.csv"
COVARIATES_CSV = "covariates.csv"

# OSF serves a file by id at this address
ARCHIVE_URL_TEMPLATE = "https://osf.io/{}/download"
ARCHIVE_NAME = "ldpsa_archive.zip"

# keys
KEY = "ssid"
GROUP_LEVELS = ("site", "pid")

# treatments
DISPERSIONS = ("water", "calgon")
REFERENCE_TRT = "c4"

# sand/silt/clay, in this order everywhere
FRACTIONS = ("sand", "silt", "clay")
# silt is counted twice; see DESIGN.md
CASI_COMPONENTS = ("sand", "silt", "silt")

QUANTILES = (0.05, 0.95)
DEPTH_DIVISOR = 100


@dataclass(frozen=True)
class WorkflowConfig:
    """
    Input and output locations for one run of the workflow.

    Every stage that reads or writes files takes this object instead of
    relying on the process working directory.
    """
    data_dir: Path = RAW
    output_dir: Path = OUTPUT
    measurements_file: str = MEASUREMENTS_CSV
    covariates_file: str = COVARIATES_CSV
    archive_id: str | None = None
    archive_url_template: str = ARCHIVE_URL_TEMPLATE
    download_timeout: float = 60.0

    @classmethod
    def from_dirs(cls, data_dir: str | Path, output_dir: str | Path, **kwargs) -> "WorkflowConfig":
        return cls(data_dir=Path(data_dir), output_dir=Path(output_dir), **kwargs)

    @property
    def measurements_path(self) -> Path:
        return Path(self.data_dir) / self.measurements_file

    @property
    def covariates_path(self) -> Path:
        return Path(self.data_dir) / self.covariates_file

    @property
    def archive_path(self) -> Path:
        return Path(self.data_dir) / ARCHIVE_NAME

    @property
    def figures_dir(self) -> Path:
        return Path(self.output_dir) / "figures"

    @property
    def tables_dir(self) -> Path:
        return Path(self.output_dir) / "tables"

    @property
    def report_path(self) -> Path:
        return Path(self.output_dir) / "casi_report.html"
