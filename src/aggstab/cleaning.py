from __future__ import annotations
from typing import Iterable
import pandas as pd

def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize column names by stripping whitespace, replacing spaces with underscores,
    removing special characters and lower-casing.
    
    Args:
        df: Input DataFrame
        
    Returns:
        DataFrame with normalized column names
    """
    df = df.copy()
    df.columns = (
        df.columns
        .astype(str)
        .str.strip()
        .str.replace(r"\s+", "_", regex=True)
        .str.replace(r"[^0-9A-Za-z_]", "", regex=True)
        .str.lower()
    )
    return df

def harmonize_ids(df: pd.DataFrame, id_cols: Iterable[str] = ("ssid",)) -> pd.DataFrame:
    """
    Standardize ID column values by converting to stripped strings.

    Integer-like floats (e.g. ``12.0`` produced by a column with gaps) are
    written without the decimal part so the same id joins across tables.
    
    Args:
        df: Input DataFrame
        id_cols: Names of the ID columns to harmonize (default: ("ssid",))
        
    Returns:
        DataFrame with standardized ID columns
    """
    df = df.copy()
    for col in id_cols:
        if col in df.columns:
            s = df[col]
            # missing ids stay missing so the schema rejects them
            df[col] = (
                s.astype(str)
                .str.strip()
                .str.replace(r"^(-?\d+)\.0$", r"\1", regex=True)
                .where(s.notna())
            )
    return df

def standardize_labels(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    """Lower-case and strip categorical labels such as ``disp`` or ``trt``."""
    df = df.copy()
    for col in cols:
        if col in df.columns:
            s = df[col]
            df[col] = s.astype(str).str.strip().str.lower().where(s.notna())
    return df

def ensure_positive(df: pd.DataFrame, cols: Iterable[str], max_report: int = 10) -> pd.DataFrame:
    """
    Validate that the given columns contain only strictly positive values.
    
    Args:
        df: Input DataFrame
        cols: Columns to check
        max_report: Number of offending row labels quoted in the error
        
    Returns:
        Original DataFrame if validation passes
        
    Raises:
        ValueError: If zero, negative or missing values are found
    """
    cols = list(cols)
    bad = ~(df[cols] > 0)
    if bad.any().any():
        rows = df.index[bad.any(axis=1)]
        bad_cols = [c for c in cols if bad[c].any()]
        raise ValueError(
            f"Non-positive values in {bad_cols} for {len(rows)} row(s); "
            f"first rows: {rows[:max_report].tolist()}"
        )
    return df
