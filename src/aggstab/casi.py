"""
Compositional Aggregate Stability Index (CASI).

Each sample's CLR coordinates are compared with those of the untreated
reference measurement of the same ``ssid``:

    casi = sum over components k of (c<k> - rc<k>)

The default component list is ``("sand", "silt", "silt")``. Summing all three
distinct parts would always give 0 because CLR coordinates sum to zero.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable
import pandas as pd

from .config import CASI_COMPONENTS, FRACTIONS, KEY, REFERENCE_TRT

logger = logging.getLogger(__name__)


@dataclass
class CasiResult:
    table: pd.DataFrame  # transformed rows joined to their reference, with a "casi" column
    dropped_ssids: list = field(default_factory=list)
    n_dropped_rows: int = 0

    @property
    def n_dropped_ssids(self) -> int:
        return len(self.dropped_ssids)


def reference_compositions(df: pd.DataFrame, reference_trt: str = REFERENCE_TRT,
                           parts: Iterable[str] = FRACTIONS) -> pd.DataFrame:
    """
    One row per ssid holding the CLR values of the reference treatment,
    renamed ``rc<part>``.

    Raises:
        ValueError: if an ssid has more than one reference row
    """
    clr_cols = [f"c{p}" for p in parts]
    ref = df.loc[df["trt"] == reference_trt, [KEY, *clr_cols]]
    dups = ref[KEY][ref[KEY].duplicated()].unique()
    if len(dups) > 0:
        raise ValueError(
            f"More than one '{reference_trt}' reference row for ssid(s): {dups[:10].tolist()}"
        )
    return ref.rename(columns={c: f"r{c}" for c in clr_cols})


def compute_casi(df: pd.DataFrame, components: Iterable[str] = CASI_COMPONENTS) -> pd.Series:
    """Sum of sample-minus-reference CLR differences over ``components``."""
    total = pd.Series(0.0, index=df.index)
    for part in components:
        total = total + (df[f"c{part}"] - df[f"rc{part}"])
    return total.rename("casi")


def derive_casi(
    transformed: pd.DataFrame,
    reference_trt: str = REFERENCE_TRT,
    components: Iterable[str] = CASI_COMPONENTS,
) -> CasiResult:
    """
    Join every transformed row to its reference composition by ssid and
    compute CASI.

    Rows whose ssid has no reference row cannot be scored; they are dropped
    and reported in the result, not raised.
    """
    components = tuple(components)
    parts = list(dict.fromkeys(components))
    ref = reference_compositions(transformed, reference_trt, parts)

    has_ref = transformed[KEY].isin(ref[KEY])
    dropped = sorted(transformed.loc[~has_ref, KEY].unique().tolist())
    n_dropped_rows = int((~has_ref).sum())
    if dropped:
        logger.warning(
            "Dropped %d row(s) from %d ssid(s) without a '%s' reference: %s",
            n_dropped_rows, len(dropped), reference_trt, dropped[:10],
        )

    # keep the row labels of the input through the join
    index_name = transformed.index.name
    joined = (
        transformed.loc[has_ref]
        .reset_index(names="_row")
        .merge(ref, on=KEY, how="inner", validate="many_to_one")
        .set_index("_row")
    )
    joined.index.name = index_name
    joined["casi"] = compute_casi(joined, components)
    return CasiResult(table=joined, dropped_ssids=dropped, n_dropped_rows=n_dropped_rows)


def merge_covariates(casi_df: pd.DataFrame, covariates: pd.DataFrame,
                     how: str = "inner") -> pd.DataFrame:
    """
    Attach per-ssid covariates.

    ``how="inner"`` drops samples without covariates (logged); ``how="left"``
    keeps them with missing covariate values.
    """
    if how not in ("inner", "left"):
        raise ValueError(f"Unsupported how={how}")
    extra = [c for c in covariates.columns if c == KEY or c not in casi_df.columns]
    index_name = casi_df.index.name
    merged = (
        casi_df.reset_index(names="_row")
        .merge(covariates[extra], on=KEY, how=how, validate="many_to_one")
        .set_index("_row")
    )
    merged.index.name = index_name
    n_lost = len(casi_df) - len(merged)
    if n_lost:
        logger.warning("Covariate join dropped %d row(s) without covariates", n_lost)
    return merged
