"""
Extreme-value labelling with quantile regression.

Two conditional quantiles of CASI (5% and 95% by default) are fitted with
statsmodels' QuantReg; a sample is extreme when its CASI lies strictly
outside the fitted band for its depth class, dispersion and sonication time.

Predictions are exponentiated before comparison by default.
Pass ``exponentiate=False`` to compare on the CASI scale.
"""
from __future__ import annotations
import logging
import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from statsmodels.tools.sm_exceptions import IterationLimitWarning

from ..config import QUANTILES
from .spec import ModelSpec, ModelFitError, QUANTILE_SPEC

logger = logging.getLogger(__name__)


@dataclass
class QuantileBounds:
    lo: pd.Series
    hi: pd.Series
    params: Dict[float, pd.DataFrame]  # per quantile: coef, std_err, p_value
    quantiles: Tuple[float, float]
    exponentiated: bool
    formula: str


def _fit_one(df: pd.DataFrame, formula: str, q: float, max_iter: int):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        res = smf.quantreg(formula, data=df).fit(q=q, max_iter=max_iter)
    hit_limit = False
    for w in caught:
        if issubclass(w.category, IterationLimitWarning):
            hit_limit = True
        else:
            logger.warning("QuantReg q=%s: %s", q, w.message)
    if hit_limit:
        raise ModelFitError(
            f"Quantile regression at q={q} did not converge within {max_iter} iterations"
        )
    return res


def fit_quantile_bounds(
    df: pd.DataFrame,
    spec: ModelSpec = QUANTILE_SPEC,
    quantiles: Iterable[float] = QUANTILES,
    exponentiate: bool = True,
    max_iter: int = 1000,
) -> QuantileBounds:
    """
    Fit the low and high quantile regressions and predict both bounds for
    every row of ``df``.

    Raises:
        KeyError: if a model column is missing
        ModelFitError: if either fit hits the iteration limit
    """
    q_lo, q_hi = sorted(quantiles)
    spec.validate(df)
    formula = spec.formula()
    data = df[spec.required_columns()]

    bounds = {}
    params = {}
    for q in (q_lo, q_hi):
        res = _fit_one(data, formula, q, max_iter)
        pred = np.asarray(res.predict(data), dtype=float)
        if exponentiate:
            pred = np.exp(pred)
        bounds[q] = pd.Series(pred, index=df.index)
        params[q] = pd.DataFrame({
            "coef": res.params,
            "std_err": res.bse,
            "p_value": res.pvalues,
        })

    return QuantileBounds(
        lo=bounds[q_lo].rename("lo"),
        hi=bounds[q_hi].rename("hi"),
        params=params,
        quantiles=(q_lo, q_hi),
        exponentiated=exponentiate,
        formula=formula,
    )


def label_extremes(casi: pd.Series, lo: pd.Series, hi: pd.Series) -> pd.Series:
    """"y" where casi is strictly outside [lo, hi], "n" otherwise (bounds included)."""
    outside = (casi < lo) | (casi > hi)
    return pd.Series(np.where(outside, "y", "n"), index=casi.index, name="extreme")


def flag_extremes(df: pd.DataFrame, bounds: QuantileBounds | None = None, **fit_kwargs) -> pd.DataFrame:
    """Return a copy of ``df`` with ``lo``, ``hi`` and ``extreme`` columns."""
    if bounds is None:
        bounds = fit_quantile_bounds(df, **fit_kwargs)
    out = df.copy()
    out["lo"] = bounds.lo
    out["hi"] = bounds.hi
    out["extreme"] = label_extremes(out["casi"], out["lo"], out["hi"])
    logger.info("Labelled %d of %d row(s) as extreme", int((out["extreme"] == "y").sum()), len(out))
    return out


def display_subset(df: pd.DataFrame, disp: str = "water") -> pd.DataFrame:
    """Non-extreme rows of one dispersion treatment, used for the filtered boxplot."""
    return df.loc[(df["disp"] == disp) & (df["extreme"] == "n")]
