"""Shared synthetic LDPSA data."""
import numpy as np
import pandas as pd
import pytest

STIMES = (0.0, 30.0, 60.0, 120.0)


def make_ldpsa(n_sites=6, profiles=("P1", "P2"), depths=(10.0, 45.0), seed=42):
    """
    One 'c4' reference (water, no sonication) per ssid plus water and calgon
    runs at every sonication time. Longer sonication moves sand into silt and clay.
    """
    rng = np.random.default_rng(seed)
    rows = []
    for s in range(1, n_sites + 1):
        site = f"S{s}"
        site_shift = rng.normal(0, 2.0)
        for pid in profiles:
            lat, lon = 45 + s * 0.1 + rng.uniform(0, 0.01), -93 + rng.uniform(0, 0.01)
            for depth in depths:
                ssid = f"{site}-{pid}-{int(depth)}"
                sand0 = 50 + site_shift + rng.normal(0, 3)
                silt0 = 32 + rng.normal(0, 2)
                clay0 = 100 - sand0 - silt0
                runs = [("c4", "water", 0.0)]
                runs += [(f"w{int(t)}", "water", t) for t in STIMES]
                runs += [(f"k{int(t)}", "calgon", t) for t in STIMES]
                for trt, disp, stime in runs:
                    if trt == "c4":
                        delta = 0.0
                    else:
                        gain = 1.5 if disp == "calgon" else 1.0
                        delta = gain * (2 + 8 * stime / 120) + site_shift * 0.5 + rng.normal(0, 1.0)
                        delta = max(delta, 0.5)
                    rows.append({
                        "ssid": ssid, "site": site, "pid": pid,
                        "disp": disp, "trt": trt, "stime": stime,
                        "depth": depth, "topsub": "top" if depth < 30 else "sub",
                        "sand": sand0 - 1.5 * delta,
                        "silt": silt0 + delta,
                        "clay": clay0 + 0.5 * delta,
                        "lat": lat, "lon": lon,
                    })
    return pd.DataFrame(rows)


def make_covariates(ssids, seed=7):
    rng = np.random.default_rng(seed)
    ssids = list(ssids)
    return pd.DataFrame({
        "ssid": ssids,
        "awc": rng.uniform(0.1, 0.3, len(ssids)),
        "ph": rng.uniform(5.5, 7.5, len(ssids)),
        "ec": rng.uniform(0.1, 1.0, len(ssids)),
        "cec": rng.uniform(10, 30, len(ssids)),
        "oc": rng.uniform(0.5, 4.0, len(ssids)),
    })


@pytest.fixture
def ldpsa():
    return make_ldpsa()


@pytest.fixture
def covariates(ldpsa):
    return make_covariates(ldpsa["ssid"].unique())


@pytest.fixture
def three_row_ldpsa():
    """Two ssids, each with a c4 reference and two treated runs."""
    base = {"site": "S1", "pid": "P1", "depth": 10.0, "topsub": "top", "lat": 45.0, "lon": -93.0}
    rows = [
        ("A", "c4", "water", 0.0, 40, 40, 20),
        ("A", "w30", "water", 30.0, 30, 40, 30),
        ("A", "k30", "calgon", 30.0, 20, 50, 30),
        ("B", "c4", "water", 0.0, 60, 25, 15),
        ("B", "w30", "water", 30.0, 50, 30, 20),
        ("B", "k30", "calgon", 30.0, 45, 30, 25),
    ]
    return pd.DataFrame([
        {"ssid": ssid, "trt": trt, "disp": disp, "stime": stime,
         "sand": sand, "silt": silt, "clay": clay, **base}
        for ssid, trt, disp, stime, sand, silt, clay in rows
    ])
