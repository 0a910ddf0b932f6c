from __future__ import annotations
import logging
from typing import Iterable
import numpy as np
import pandas as pd

from .config import DISPERSIONS, FRACTIONS
from .cleaning import ensure_positive

logger = logging.getLogger(__name__)

def restrict_treatments(df: pd.DataFrame, treatments: Iterable[str] = DISPERSIONS,
                        col: str = "disp") -> pd.DataFrame:
    """Keep only rows whose dispersion treatment is one of ``treatments``."""
    keep = df[col].isin(list(treatments))
    n_removed = int((~keep).sum())
    if n_removed:
        logger.info("Removed %d row(s) with %s not in %s", n_removed, col, list(treatments))
    return df.loc[keep].copy()

def closure(df: pd.DataFrame) -> pd.DataFrame:
    """
    Close each row to a composition summing to 1.
    Returns a DataFrame with the same index/columns.
    """
    X = df.to_numpy(dtype=float, copy=True)
    if np.any(X < 0):
        raise ValueError("closure requires nonnegative inputs.")
    row_sums = X.sum(axis=1, keepdims=True)
    if np.any(row_sums == 0):
        rows = df.index[row_sums[:, 0] == 0]
        raise ValueError(f"closure undefined for all-zero rows: {rows[:10].tolist()}")
    return pd.DataFrame(X / row_sums, index=df.index, columns=df.columns)

def clr_transform(df: pd.DataFrame) -> pd.DataFrame:
    """
    Centered log-ratio: log of each part minus the row mean of the logs.
    Rows must be strictly positive; zeros are reported, never replaced.
    """
    ensure_positive(df, df.columns)
    L = np.log(df.to_numpy(dtype=float, copy=True))
    C = L - L.mean(axis=1, keepdims=True)
    return pd.DataFrame(C, index=df.index, columns=df.columns)

def compositional_transform(
    df: pd.DataFrame,
    parts: Iterable[str] = FRACTIONS,
    treatments: Iterable[str] | None = DISPERSIONS,
) -> pd.DataFrame:
    """
    Restrict to the analysed treatments, close sand/silt/clay and append
    the proportions (``psand``...) and their CLR values (``csand``...).

    Args:
        df: Measurement table with one column per part
        parts: Names of the compositional parts
        treatments: Dispersion treatments to keep; None keeps every row

    Returns:
        Copy of the (filtered) input with the new columns appended; the
        index is preserved so rows can be traced back to the input.
    """
    parts = list(parts)
    missing = [p for p in parts if p not in df.columns]
    if missing:
        raise KeyError(f"Compositional columns not found: {missing}")
    out = restrict_treatments(df, treatments) if treatments is not None else df.copy()

    props = closure(out[parts])
    clr = clr_transform(props)
    for p in parts:
        out[f"p{p}"] = props[p]
        out[f"c{p}"] = clr[p]
    return out
