"""
Descriptive profiling of the CASI table: summary tables, an interactive map
of sampling locations and ternary diagrams of the particle-size fractions.
"""
from __future__ import annotations
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .config import DISPERSIONS, KEY

_TEMPLATE = "plotly_white"


def casi_summary(df: pd.DataFrame, by: tuple[str, ...] = ("disp", "stime")) -> pd.DataFrame:
    """Count, mean, std, median, min and max of CASI per dispersion x sonication time."""
    out = (
        df.groupby(list(by), observed=True)["casi"]
        .agg(["count", "mean", "std", "median", "min", "max"])
        .reset_index()
    )
    return out


def sample_counts(df: pd.DataFrame) -> pd.DataFrame:
    """Samples per sonication time (rows) and dispersion treatment (columns)."""
    return pd.crosstab(df["stime"], df["disp"])


def location_map(df: pd.DataFrame, zoom: float = 5) -> go.Figure:
    """One marker per sampled profile, coloured by site."""
    locs = (
        df.dropna(subset=["lat", "lon"])
        .groupby(["site", "pid"], as_index=False)
        .agg(lat=("lat", "first"), lon=("lon", "first"), n_samples=(KEY, "nunique"))
    )
    fig = px.scatter_map(
        locs,
        lat="lat",
        lon="lon",
        color="site",
        hover_name="pid",
        hover_data={"site": True, "n_samples": True, "lat": ":.4f", "lon": ":.4f"},
        zoom=zoom,
        map_style="open-street-map",
    )
    fig.update_layout(title="Sampling locations", margin=dict(l=0, r=0, t=40, b=0))
    return fig


def ternary_figure(df: pd.DataFrame, disp: str, color: str = "stime") -> go.Figure:
    """
    Sand/silt/clay ternary scatter for one dispersion treatment.

    ``color="stime"`` uses a discrete colour per sonication time,
    ``color="casi"`` a continuous scale.
    """
    if color not in ("stime", "casi"):
        raise ValueError(f"Unsupported color={color}")
    sub = df.loc[df["disp"] == disp].copy()
    if color == "stime":
        sub["stime"] = sub["stime"].map(lambda v: f"{v:g}")
        kwargs = dict(category_orders={"stime": sorted(sub["stime"].unique(), key=float)})
    else:
        kwargs = dict(color_continuous_scale="Viridis")
    fig = px.scatter_ternary(
        sub,
        a="clay",
        b="sand",
        c="silt",
        color=color,
        hover_data=[KEY, "trt"],
        template=_TEMPLATE,
        **kwargs,
    )
    fig.update_layout(title=f"Particle-size fractions, {disp} ({color})")
    return fig


def ternary_panels(df: pd.DataFrame, treatments=DISPERSIONS) -> dict[str, go.Figure]:
    """Ternary figures keyed ``"<disp>_<color>"`` for every treatment and colouring."""
    return {
        f"{disp}_{color}": ternary_figure(df, disp, color)
        for disp in treatments
        for color in ("stime", "casi")
    }
