import numpy as np
import pandas as pd
import pytest
from aggstab.models.quantile import (
    fit_quantile_bounds, label_extremes, flag_extremes, display_subset,
)
from aggstab.models.spec import ModelFitError


@pytest.fixture
def casi_df():
    rng = np.random.default_rng(0)
    n = 240
    topsub = rng.choice(["top", "sub"], n)
    disp = rng.choice(["water", "calgon"], n)
    stime = rng.choice([0.0, 30.0, 60.0, 120.0], n)
    casi = (0.4 + 0.2 * (topsub == "sub") - 0.1 * (disp == "calgon")
            + np.where(disp == "calgon", 0.004, 0.002) * stime
            + rng.normal(0, 0.15, n))
    return pd.DataFrame({"casi": casi, "topsub": topsub, "disp": disp, "stime": stime})


def test_label_extremes_boundary_is_not_extreme():
    casi = pd.Series([0.0, 1.0, 2.0, 0.999, 2.001])
    lo = pd.Series([1.0] * 5)
    hi = pd.Series([2.0] * 5)
    assert list(label_extremes(casi, lo, hi)) == ["y", "n", "n", "y", "y"]


def test_bounds_on_casi_scale(casi_df):
    b = fit_quantile_bounds(casi_df, exponentiate=False)
    assert b.quantiles == (0.05, 0.95)
    assert (b.lo <= b.hi).all()
    assert b.lo.index.equals(casi_df.index)
    outside = ((casi_df["casi"] < b.lo) | (casi_df["casi"] > b.hi)).mean()
    assert 0.02 < outside < 0.25
    assert set(b.params) == {0.05, 0.95}
    assert "C(disp)[T.water]:stime" in b.params[0.95].index or "C(disp)[water]:stime" in b.params[0.95].index


def test_exponentiated_bounds(casi_df):
    lin = fit_quantile_bounds(casi_df, exponentiate=False)
    exp = fit_quantile_bounds(casi_df)
    assert exp.exponentiated
    assert np.allclose(exp.lo, np.exp(lin.lo))
    assert np.allclose(exp.hi, np.exp(lin.hi))


def test_flag_extremes_adds_columns(casi_df):
    out = flag_extremes(casi_df, exponentiate=False)
    assert {"lo", "hi", "extreme"} <= set(out.columns)
    assert set(out["extreme"]) <= {"y", "n"}
    expected = np.where((out["casi"] < out["lo"]) | (out["casi"] > out["hi"]), "y", "n")
    assert (out["extreme"].to_numpy() == expected).all()
    assert "extreme" not in casi_df.columns


def test_display_subset_only_filters_water_extremes():
    df = pd.DataFrame({
        "disp": ["water", "water", "calgon", "calgon"],
        "extreme": ["y", "n", "y", "n"],
        "casi": [1.0, 2.0, 3.0, 4.0],
    })
    out = display_subset(df)
    assert list(out["casi"]) == [2.0]


def test_missing_model_column(casi_df):
    with pytest.raises(KeyError):
        fit_quantile_bounds(casi_df.drop(columns=["topsub"]))


def test_iteration_limit_raises(casi_df):
    with pytest.raises(ModelFitError, match="did not converge"):
        fit_quantile_bounds(casi_df, max_iter=1)
