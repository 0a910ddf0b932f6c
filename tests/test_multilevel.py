import numpy as np
import pandas as pd
import pytest
from aggstab.models.spec import Term, ModelSpec, ModelFitError
from aggstab.models.multilevel import fit_multilevel, significance_stars

SITE_EFFECTS = [-0.6, -0.3, -0.1, 0.1, 0.3, 0.6]
PROFILE_EFFECTS = [-0.2, 0.0, 0.2]


@pytest.fixture
def balanced():
    """Known intercept 2.0 and slope 0.5; centred site and profile effects."""
    rng = np.random.default_rng(1)
    rows = []
    for s, site_eff in enumerate(SITE_EFFECTS, start=1):
        for p, prof_eff in enumerate(PROFILE_EFFECTS, start=1):
            for x in range(8):
                rows.append({
                    "site": f"S{s}",
                    "pid": f"P{p}",  # same labels in every site
                    "x": float(x),
                    "y": 2.0 + 0.5 * x + site_eff + prof_eff + rng.normal(0, 0.05),
                })
    return pd.DataFrame(rows)


SPEC = ModelSpec(response="y", terms=(Term("x"),), groups=("site", "pid"))


def test_recovers_intercept_and_slope(balanced):
    res = fit_multilevel(balanced, SPEC)
    fe = res.fixed_effects
    assert fe.loc["Intercept", "estimate"] == pytest.approx(2.0, abs=0.05)
    assert fe.loc["x", "estimate"] == pytest.approx(0.5, abs=0.01)
    assert fe.loc["x", "signif"] == "***"
    assert res.n_obs == len(balanced)
    assert res.n_groups == len(SITE_EFFECTS)


def test_site_effects_table(balanced):
    res = fit_multilevel(balanced, SPEC)
    ge = res.group_effects
    assert list(ge["site"]) == sorted(ge["site"])
    assert np.allclose(ge["upper"] - ge["estimate"], 2 * ge["std_err"])
    assert np.allclose(ge["estimate"] - ge["lower"], 2 * ge["std_err"])
    assert (ge["std_err"] > 0).all()
    assert np.corrcoef(ge["estimate"], SITE_EFFECTS)[0, 1] > 0.95


def test_profiles_nested_within_sites(balanced):
    res = fit_multilevel(balanced, SPEC)
    ne = res.nested_effects
    # P1..P3 in six sites are eighteen distinct profiles
    assert len(ne) == len(SITE_EFFECTS) * len(PROFILE_EFFECTS)
    assert set(ne["level"]) == {"pid"}
    assert set(ne["label"]) == {"P1", "P2", "P3"}
    assert list(res.variance_components.index) == ["site", "pid", "residual"]


def test_requires_grouping_level(balanced):
    with pytest.raises(ValueError):
        fit_multilevel(balanced, SPEC.with_groups([]))


def test_missing_column(balanced):
    with pytest.raises(KeyError):
        fit_multilevel(balanced.drop(columns=["pid"]), SPEC)


def test_significance_stars():
    assert significance_stars(0.0001) == "***"
    assert significance_stars(0.005) == "**"
    assert significance_stars(0.03) == "*"
    assert significance_stars(0.07) == "."
    assert significance_stars(0.5) == ""
    assert significance_stars(float("nan")) == ""


def test_non_convergence_raises(balanced):
    with pytest.raises(ModelFitError, match="did not converge"):
        fit_multilevel(balanced, SPEC, method=["lbfgs"], maxiter=1)
