"""
Random-intercepts model of CASI with nested grouping levels.

The outermost level of ``spec.groups`` (site) is the statsmodels MixedLM
grouping factor; every inner level (profile within site, ...) enters as a
variance component within that group. Inner levels are keyed on the full
path below the outer group, so two profiles sharing a label in different
sites, or two horizons sharing a label in different profiles, stay distinct.
"""
from __future__ import annotations
import logging
import re
import warnings
from dataclasses import dataclass
from typing import Any, Dict

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from scipy import stats

from .spec import ModelSpec, ModelFitError, MULTILEVEL_SPEC

logger = logging.getLogger(__name__)

# "pid[C(_nest1)[P1]]" -> vc "pid", level "P1"
_VC_NAME = re.compile(r"^(?P<vc>[^\[]+)\[C\(_nest\d+\)\[(?P<level>.*)\]\]$")


@dataclass
class MultilevelResult:
    fixed_effects: pd.DataFrame   # term x (estimate, std_err, z, p_value, signif)
    group_effects: pd.DataFrame   # outer level: group, estimate, std_err, lower, upper
    nested_effects: pd.DataFrame  # inner levels: group, level, label, estimate, std_err
    variance_components: pd.Series
    formula: str
    n_obs: int
    n_groups: int
    raw: Any  # statsmodels MixedLMResults

    def summary(self) -> str:
        return str(self.raw.summary())


def significance_stars(p: float) -> str:
    if not np.isfinite(p):
        return ""
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    if p < 0.1:
        return "."
    return ""


def _nesting_keys(df: pd.DataFrame, groups: tuple[str, ...]) -> tuple[pd.DataFrame, Dict[str, str]]:
    data = df.copy()
    vc_formula = {}
    for i, level in enumerate(groups[1:], start=1):
        key = f"_nest{i}"
        data[key] = data[list(groups[1:i + 1])].astype(str).agg("/".join, axis=1)
        vc_formula[level] = f"0 + C({key})"
    return data, vc_formula


def fixed_effects_table(res) -> pd.DataFrame:
    est = res.fe_params
    se = res.bse_fe
    z = est / se
    p = pd.Series(2 * stats.norm.sf(np.abs(z)), index=est.index)
    out = pd.DataFrame({"estimate": est, "std_err": se, "z": z, "p_value": p})
    out["signif"] = out["p_value"].map(significance_stars)
    out.index.name = "term"
    return out


def random_effects_tables(res, outer: str, width: float = 2.0) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Conditional random intercepts with their standard errors.

    Returns the outer-level table (with ``lower``/``upper`` = estimate -/+
    ``width`` x SE) sorted by group id, and a long table of inner-level
    intercepts.
    """
    outer_rows = []
    inner_rows = []
    for group, effects in res.random_effects.items():
        cov = res.random_effects_cov[group]
        sd = np.sqrt(np.clip(np.diag(cov.to_numpy()), 0, None))
        outer_rows.append({outer: group, "estimate": float(effects.iloc[0]), "std_err": float(sd[0])})
        for pos, name in enumerate(effects.index[1:], start=1):
            m = _VC_NAME.match(str(name))
            level, label = (m.group("vc"), m.group("level")) if m else ("", str(name))
            inner_rows.append({
                outer: group,
                "level": level,
                "label": label,
                "estimate": float(effects.iloc[pos]),
                "std_err": float(sd[pos]),
            })

    group_effects = pd.DataFrame(outer_rows, columns=[outer, "estimate", "std_err"])
    group_effects = group_effects.sort_values(outer, kind="stable").reset_index(drop=True)
    group_effects["lower"] = group_effects["estimate"] - width * group_effects["std_err"]
    group_effects["upper"] = group_effects["estimate"] + width * group_effects["std_err"]

    nested_effects = pd.DataFrame(
        inner_rows, columns=[outer, "level", "label", "estimate", "std_err"]
    )
    return group_effects, nested_effects


def fit_multilevel(df: pd.DataFrame, spec: ModelSpec = MULTILEVEL_SPEC, reml: bool = True,
                   **fit_kwargs) -> MultilevelResult:
    """
    Fit the random-intercepts model described by ``spec``.

    Args:
        df: Enriched CASI table
        spec: Fixed terms, interactions and nesting levels (outermost first)
        reml: Restricted maximum likelihood (default) or ML
        **fit_kwargs: Passed to ``MixedLM.fit``

    Raises:
        KeyError: if a model column is missing
        ValueError: if the spec has no grouping level
        ModelFitError: if the optimizer reports non-convergence
    """
    if not spec.groups:
        raise ValueError("A multilevel model needs at least one grouping level")
    spec.validate(df)
    outer = spec.groups[0]
    data = df[spec.required_columns()].dropna()
    data, vc_formula = _nesting_keys(data, spec.groups)
    formula = spec.formula()

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        model = smf.mixedlm(
            formula,
            data=data,
            groups=outer,
            re_formula="1",
            vc_formula=vc_formula or None,
        )
        res = model.fit(reml=reml, **fit_kwargs)
    for w in caught:
        logger.warning("MixedLM: %s", w.message)
    if not res.converged:
        raise ModelFitError(f"Mixed model did not converge: {formula}")

    group_effects, nested_effects = random_effects_tables(res, outer)
    vc_names = list(model.exog_vc.names) if vc_formula else []
    variance_components = pd.Series(
        [float(np.asarray(res.cov_re)[0, 0]), *map(float, np.atleast_1d(res.vcomp)), float(res.scale)],
        index=[outer, *vc_names, "residual"],
        name="variance",
    )

    n_groups = len(res.random_effects)
    logger.info("Fitted %s on %d rows, %d %s group(s)", formula, len(data), n_groups, outer)
    return MultilevelResult(
        fixed_effects=fixed_effects_table(res),
        group_effects=group_effects,
        nested_effects=nested_effects,
        variance_components=variance_components,
        formula=formula,
        n_obs=len(data),
        n_groups=n_groups,
        raw=res,
    )
