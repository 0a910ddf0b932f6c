from __future__ import annotations
import logging
import zipfile
from pathlib import Path
import pandas as pd
import requests

from .config import WorkflowConfig
from .cleaning import normalize_columns, harmonize_ids, standardize_labels
from .validators import validate_measurements, validate_covariates

logger = logging.getLogger(__name__)

ID_COLUMNS = ("ssid", "site", "pid")
LABEL_COLUMNS = ("disp", "trt", "topsub")

def fetch_archive(config: WorkflowConfig) -> list[Path]:
    """
    Download the data archive identified by ``config.archive_id`` and unpack it
    into ``config.data_dir``.

    One request, no retry: a failed download raises and stops the run.

    Returns:
        Paths of the extracted files
    """
    if config.archive_id is None:
        raise ValueError("No archive_id configured; cannot fetch the data archive.")
    url = config.archive_url_template.format(config.archive_id)
    data_dir = Path(config.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Downloading %s", url)
    try:
        resp = requests.get(url, timeout=config.download_timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Archive download failed for %s: %s", url, exc)
        raise

    archive = config.archive_path
    archive.write_bytes(resp.content)
    with zipfile.ZipFile(archive) as zf:
        names = [n for n in zf.namelist() if not n.endswith("/")]
        zf.extractall(data_dir)
    logger.info("Extracted %d file(s) into %s", len(names), data_dir)
    return [data_dir / n for n in names]

def _read_csv(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(path)
    df = normalize_columns(df)
    return harmonize_ids(df, ID_COLUMNS)

def read_measurements(source: WorkflowConfig | str | Path) -> pd.DataFrame:
    """Read and validate the LDPSA measurement table."""
    path = source.measurements_path if isinstance(source, WorkflowConfig) else source
    df = _read_csv(path)
    df = standardize_labels(df, LABEL_COLUMNS)
    df = validate_measurements(df)
    logger.info("Read %d measurement rows from %s", len(df), path)
    return df

def read_covariates(source: WorkflowConfig | str | Path) -> pd.DataFrame:
    """Read and validate the per-ssid covariate table."""
    path = source.covariates_path if isinstance(source, WorkflowConfig) else source
    df = _read_csv(path)
    df = validate_covariates(df)
    logger.info("Read %d covariate rows from %s", len(df), path)
    return df
